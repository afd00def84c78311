"""Import a feed file from the command line, bypassing the HTTP endpoint.

    python run_import.py feed.xml [--timeout 30] [--skip-invalid]
"""
import argparse
import sys
from dotenv import load_dotenv

load_dotenv()


def main(argv=None):
    from app.config import get_settings
    from app.db import Base, create_db_engine, make_session_factory
    from app.errors import ImportFailure
    from app.services import import_feed

    settings = get_settings()
    parser = argparse.ArgumentParser(description="Replace the imoveis table with an XML feed.")
    parser.add_argument("feed", help="path to the XML feed")
    parser.add_argument("--timeout", type=float, default=settings.import_timeout,
                        help="storage timeout in seconds")
    parser.add_argument("--skip-invalid", action="store_true",
                        help="skip listings that cannot be mapped instead of aborting")
    args = parser.parse_args(argv)

    policy = "skip" if args.skip_invalid else settings.mapping_error_policy
    engine = create_db_engine(settings)
    try:
        Base.metadata.create_all(bind=engine)
        with open(args.feed, "rb") as fh:
            xml = fh.read()
        db = make_session_factory(engine)()
        try:
            result = import_feed(db, xml, timeout=args.timeout, on_mapping_error=policy)
        finally:
            db.close()
    except ImportFailure as e:
        print(f"{e.kind}: {e.message}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    print(f"{result.imported_count} imóveis importados ({result.skipped_count} ignorados)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
