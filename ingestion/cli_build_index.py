from __future__ import annotations

import argparse
from pathlib import Path

from common.config import env_settings, yaml_config
from common.logger import get_logger
from ingestion.ingest_pipeline import ingest_folder

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Build/Update the Chroma index from local PDF/TXT/MD files."
    )
    parser.add_argument(
        "--input_dir",
        type=str,
        default=str(env_settings.data_dir or yaml_config.app.data_dir),
        help="Folder with PDFs/TXT/MD",
    )
    parser.add_argument(
        "--collection", type=str, default=None, help="Chroma collection name"
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        default=env_settings.reset_collection,
        help="Delete the collection before upserting (also RESET_COLLECTION=true)",
    )
    args = parser.parse_args()

    input_dir = Path(args.input_dir)
    if not input_dir.exists():
        log.error("Input directory does not exist: %s", input_dir)
        raise SystemExit(1)

    try:
        report = ingest_folder(
            input_dir=input_dir, collection_name=args.collection, reset=args.reset
        )
    except Exception as e:
        log.error("Ingestion failed: %s", e, exc_info=True)
        raise SystemExit(1)

    if report is None:
        print(f"No documents found in: {input_dir}")
        return

    print("Ingest complete.")
    print(f"Documents: {report.documents}")
    print(f"Chunks: {report.chunks}")
    print(f"Chroma collection: {report.collection}")


if __name__ == "__main__":
    main()
