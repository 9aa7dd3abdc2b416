# salestrend/sample_data.py
import csv
import random
import uuid
from datetime import date
from pathlib import Path
from typing import List, Optional

from faker import Faker
from prefect import flow, get_run_logger, task

from .config import settings
from .flows import run_csv_pipeline

HEADERS = ["date", "product", "category", "region", "price", "quantity"]

# product -> (category, min price, max price)
CATALOG = {
    "Wireless Mouse": ("Electronics", 15.0, 45.0),
    "Mechanical Keyboard": ("Electronics", 60.0, 180.0),
    "USB-C Hub": ("Electronics", 25.0, 70.0),
    "Office Chair": ("Furniture", 120.0, 450.0),
    "Standing Desk": ("Furniture", 250.0, 900.0),
    "Notebook Pack": ("Stationery", 5.0, 20.0),
    "Gel Pens": ("Stationery", 3.0, 12.0),
    "Coffee Beans": ("Groceries", 8.0, 30.0),
}
REGIONS = ["North", "South", "East", "West"]


def generate_sales_rows(
    rows: int,
    start_date: date = None,
    end_date: date = None,
    seed: Optional[int] = None,
) -> List[dict]:
    """Random but plausible sales rows in the upload CSV layout."""
    fake = Faker()
    rng = random.Random(seed)
    if seed is not None:
        fake.seed_instance(seed)

    start_date = start_date or date.today().replace(day=1, year=date.today().year - 1)
    end_date = end_date or date.today()

    products = list(CATALOG)
    out = []
    for _ in range(rows):
        product = rng.choice(products)
        category, low, high = CATALOG[product]
        out.append({
            "date": fake.date_between(start_date=start_date, end_date=end_date).isoformat(),
            "product": product,
            "category": category,
            "region": rng.choice(REGIONS),
            "price": round(rng.uniform(low, high), 2),  # nosec B311
            "quantity": rng.randint(1, 10),  # nosec B311
        })
    return out


def write_sales_csv(file_path: Path, rows: List[dict]) -> Path:
    file_path = Path(file_path)
    with file_path.open(mode="w", newline="") as file:
        writer = csv.DictWriter(file, fieldnames=HEADERS)
        writer.writeheader()
        writer.writerows(rows)
    return file_path


@task
def generate_bulk_csv(rows: int, upload_dir: str):
    logger = get_run_logger()
    # Save directly to the shared volume the worker reads from
    file_path = Path(upload_dir) / f"bulk_sales_{uuid.uuid4()}.csv"
    file_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Generating {rows} rows into {file_path}...")
    write_sales_csv(file_path, generate_sales_rows(rows))
    return str(file_path)


@flow(name="Bulk Sales Generator Pipeline")
def run_bulk_generation(user_id: int, num_rows: int = 10000):
    """
    Generates a specified number of dummy sales rows and ingests them for a user.
    """
    file_path = generate_bulk_csv(rows=num_rows, upload_dir=settings.UPLOAD_DIR)
    return run_csv_pipeline(file_path=file_path, user_id=user_id, database_url=settings.get_database_url())
