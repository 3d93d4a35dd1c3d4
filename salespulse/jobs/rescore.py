import argparse
import logging

from salespulse.database import get_store


def main(dry_run: bool) -> int:
    changed = get_store().rescore_leads(dry_run=dry_run)
    verb = "Would rescore" if dry_run else "Rescored"
    print(f"{verb}: {changed} leads")
    return changed

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    p = argparse.ArgumentParser()
    p.add_argument("--dry-run", action="store_true", help="count changed scores without saving")
    args = p.parse_args()
    main(args.dry_run)
