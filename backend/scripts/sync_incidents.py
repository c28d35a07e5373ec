import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from hrfe.config import LOG_LEVEL  # noqa: E402
from hrfe.db import Base, SessionLocal, engine, make_engine  # noqa: E402
from hrfe.services.incident_store import IncidentStore  # noqa: E402
from hrfe.services.sync_incidents import (  # noqa: E402
    BACKWARD,
    FORWARD,
    SyncAborted,
    run_sync,
)
from hrfe.services.timeline import TimelineClient  # noqa: E402

log = logging.getLogger("sync_incidents")

DIRECTIONS = {
    "forward": (FORWARD,),
    "backward": (BACKWARD,),
    "both": (FORWARD, BACKWARD),
}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Pull @HRFE_Incidents reports into the incidents table."
    )
    parser.add_argument(
        "--direction",
        choices=sorted(DIRECTIONS),
        default="both",
        help="Which passes to run.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this run.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bind = make_engine(args.database_url) if args.database_url else engine
    Base.metadata.create_all(bind=bind)

    db = SessionLocal(bind=bind)
    try:
        report = asyncio.run(
            run_sync(TimelineClient(), IncidentStore(db), DIRECTIONS[args.direction])
        )
    except SyncAborted as e:
        log.error("%s: %s", e, e.__cause__)
        return 1
    finally:
        db.close()

    for p in report.passes:
        print(
            f"{p.direction}: {p.pages} pages, {p.fetched} fetched, "
            f"{p.inserted} inserted, {p.skipped} skipped"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
