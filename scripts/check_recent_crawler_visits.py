"""Print the most recent AI crawler visits, optionally for one workspace.

Usage:
    docker compose exec backend python -m scripts.check_recent_crawler_visits
    docker compose exec backend python -m scripts.check_recent_crawler_visits <workspace_id> [limit]
"""

import sys
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from split.models.base import SyncSessionLocal
from split.models.crawler_visit import CrawlerVisit
from split.models.workspace import Workspace


def check(workspace_id: uuid.UUID | None = None, limit: int = 20) -> None:
    db = SyncSessionLocal()
    try:
        query = select(CrawlerVisit, Workspace.domain).join(Workspace, CrawlerVisit.workspace_id == Workspace.id)
        if workspace_id:
            query = query.where(CrawlerVisit.workspace_id == workspace_id)
        rows = db.execute(query.order_by(CrawlerVisit.timestamp.desc()).limit(limit)).all()

        if not rows:
            print("No crawler visits recorded")
            return

        print(f"Last {len(rows)} crawler visit(s):")
        for visit, workspace_domain in rows:
            print(
                f"  {visit.timestamp:%Y-%m-%d %H:%M:%S}  {visit.crawler_name:<20} "
                f"{visit.crawler_company or 'Unknown':<12} {visit.domain}{visit.path}"
                f"  [{workspace_domain}]"
            )

        since = datetime.now(timezone.utc) - timedelta(hours=24)
        day_query = select(CrawlerVisit.crawler_name).where(CrawlerVisit.timestamp >= since)
        if workspace_id:
            day_query = day_query.where(CrawlerVisit.workspace_id == workspace_id)
        counts = Counter(db.execute(day_query).scalars())
        print(f"\nLast 24h: {sum(counts.values())} visit(s)")
        for name, count in counts.most_common():
            print(f"  {name}: {count}")
    finally:
        db.close()


if __name__ == "__main__":
    ws = uuid.UUID(sys.argv[1]) if len(sys.argv) > 1 else None
    n = int(sys.argv[2]) if len(sys.argv) > 2 else 20
    check(ws, n)
