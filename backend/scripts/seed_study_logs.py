"""CLI script to seed sample study logs into the configured store.
Usage: python scripts/seed_study_logs.py [--count N] [--start-date YYYY-MM-DD]
"""
import sys
import argparse
import pathlib
from datetime import date, timedelta
from typing import Optional
# Ensure `backend/` is on sys.path so `study_diary` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from study_diary import models, repositories, services
from study_diary.config import settings
from study_diary.schemas import StudyLogCreate

CATEGORIES = list(models.Category)
UNDERSTANDINGS = list(models.Understanding)


def seed(service: services.StudyLogService, count: int, start_date: date) -> dict:
    """Create `count` study logs, one per day from `start_date`.

    Categories and understanding levels rotate so listings and filters
    have something to show. Returns a small summary dict.
    """
    created = []
    for i in range(count):
        payload = StudyLogCreate(
            title=f"Study log {i + 1}",
            content=f"Sample notes for session {i + 1}",
            category=CATEGORIES[i % len(CATEGORIES)].value,
            understanding=UNDERSTANDINGS[i % len(UNDERSTANDINGS)].value,
            study_time=30 + (i % 6) * 15,
            study_date=start_date + timedelta(days=i),
        )
        created.append(service.create_study_log(payload).id)
    return {'created': len(created), 'first_id': created[0] if created else None, 'total': service.count_study_logs()}


def main(count: int = 25, start_date: Optional[date] = None, service: Optional[services.StudyLogService] = None):
    """Seed the store selected by settings and print a summary.

    Tests pass their own `service`; from the command line the store comes
    from `STORE_BACKEND`/`DATABASE_URL`. An in-memory store would be gone
    once the script exits, so without a `service` only `sql` is seeded.
    """
    owned = service is None
    if owned and settings.STORE_BACKEND != 'sql':
        print(f"Refusing to seed: STORE_BACKEND={settings.STORE_BACKEND} keeps nothing after exit; set STORE_BACKEND=sql", file=sys.stderr)
        return None
    if owned:
        service = services.StudyLogService(repositories.build_store(settings))
    start = start_date or service.today() - timedelta(days=max(count - 1, 0))
    try:
        summary = seed(service, count, start)
    finally:
        if owned:
            service.store.close()
    print(f"Seeded {summary['created']} study logs (first id: {summary['first_id']}, total: {summary['total']})")
    return summary


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Seed sample study logs')
    parser.add_argument('--count', type=int, default=25)
    parser.add_argument('--start-date', type=date.fromisoformat, default=None)
    args = parser.parse_args()
    if main(count=args.count, start_date=args.start_date) is None:
        sys.exit(1)
