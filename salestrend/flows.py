# salestrend/flows.py
from dataclasses import asdict

from prefect import flow, get_run_logger, task

from .config import settings
from .database import init_db, make_engine
from .processing import process_csv_to_db


@task
def ingest_csv_file(file_path: str, user_id: int, database_url: str) -> dict:
    engine = make_engine(database_url)
    try:
        init_db(engine)
        stats = process_csv_to_db(file_path, user_id, engine)
    finally:
        engine.dispose()
    return asdict(stats)


@flow(name="CSV Sales Ingestion Pipeline")
def run_csv_pipeline(file_path: str, user_id: int, database_url: str = None) -> dict:
    """
    Merges a CSV file of sales rows into a user's monthly data.
    """
    logger = get_run_logger()
    stats = ingest_csv_file(file_path, user_id, database_url or settings.get_database_url())
    logger.info(
        f"Ingested {file_path} for user {user_id}: "
        f"{stats['accepted_rows']} accepted, {stats['rejected_rows']} rejected, "
        f"{stats['months_updated']} months updated"
    )
    return stats
