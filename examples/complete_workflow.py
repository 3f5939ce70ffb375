"""
Complete workflow example: Catalog → Progress → Queries → Persistence

Demonstrates end-to-end use of the library:
1. Load the bundled SwiftUI bootcamp catalog
2. Open a learner session backed by a JSON progress file
3. Complete exercises and inspect the next one
4. Print the progress summary
5. Remove a chapter and prune orphaned progress
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from learnpath.config import configure_logging
from learnpath.models.catalog import load_catalog
from learnpath.orchestrator import LearningSession
from learnpath.utils.persistence import JsonFileProgressStore


def main():
    configure_logging("INFO")

    # ==================== Step 1: Load Catalog ====================
    print("=" * 60)
    print("STEP 1: Loading Catalog")
    print("=" * 60)

    catalog = load_catalog()
    for module in catalog.list_modules_in_order():
        print(f"  {module.order}. {module.title} ({len(module.exercises)} exercises)")
    print()

    # ==================== Step 2: Open Session ====================
    print("=" * 60)
    print("STEP 2: Opening Learner Session")
    print("=" * 60)

    progress_file = Path(tempfile.mkdtemp()) / "learner-alice.json"
    store = JsonFileProgressStore("learner-alice", progress_file)
    session = LearningSession.open("learner-alice", catalog=catalog, store=store, autosave=True)
    print(f"✓ {session!r}")
    print()

    # ==================== Step 3: Complete Exercises ====================
    print("=" * 60)
    print("STEP 3: Completing Exercises")
    print("=" * 60)

    for exercise_id in ["ex-2.1", "ex-2.2", "ex-3.1"]:
        exercise = session.complete(exercise_id)
        print(f"✓ Completed {exercise.id}: {exercise.title} ({exercise.difficulty})")

    next_exercise = session.next_exercise()
    print(f"  Next up: {next_exercise.id} - {next_exercise.title}")
    print()

    # ==================== Step 4: Summary ====================
    print("=" * 60)
    print("STEP 4: Progress Summary")
    print("=" * 60)

    summary = session.summary()
    for entry in summary["modules"]:
        print(f"  {entry['title']:<30} {entry['completed']}/{entry['total']}  {entry['percent']:.1f}%")
    print(f"  Overall: {summary['overall']['percent']:.1f}%")
    print(f"  Saved to: {progress_file}")
    print()

    # ==================== Step 5: Catalog Change ====================
    print("=" * 60)
    print("STEP 5: Removing a Chapter")
    print("=" * 60)

    removed = session.replace_catalog(catalog.without_module("ch03-shapes"))
    print(f"✓ Pruned progress for: {', '.join(removed) or 'nothing'}")
    print(f"  Overall now: {session.summary()['overall']['percent']:.1f}%")


if __name__ == "__main__":
    main()
