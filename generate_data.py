# generate_data.py
import argparse
from pathlib import Path

from salestrend.sample_data import generate_sales_rows, write_sales_csv

# Setup argument parser
parser = argparse.ArgumentParser(description="Generate dummy sales data.")
parser.add_argument("--rows", type=int, default=1000, help="Number of rows to generate")
parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible output")
parser.add_argument("--output", type=Path, default=Path("dummy_sales.csv"), help="CSV file to write")
args = parser.parse_args()

output_file = write_sales_csv(args.output, generate_sales_rows(args.rows, seed=args.seed))
print(f"Wrote {args.rows} rows to {output_file}")
