"""
Reset the drill database.

DANGEROUS: This deletes all items and review history!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.reset_drill_db
"""

from drill.store.database import SqlItemStore


def main():
    print("=" * 60)
    print("WARNING: Reset Drill Database")
    print("=" * 60)
    print()
    print("This will DELETE:")
    print("  - All items and their review statistics")
    print("  - All review events (logs of past reviews)")
    print("  - The learned optimal-factor matrix")
    print("  - Any suspended session")
    print()

    response = input("Are you sure you want to reset? (type 'yes' to confirm): ")

    if response.lower() == "yes":
        print("\nResetting database...")
        SqlItemStore().reset_db()
        print("✓ Database reset complete!")
        print("\nRe-import items with: python -m scripts.import_items <csv>")
    else:
        print("\nCancelled. No changes made.")


if __name__ == "__main__":
    main()
