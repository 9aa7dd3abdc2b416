# worker.py
from prefect import serve
from salestrend.flows import run_csv_pipeline
from salestrend.sample_data import run_bulk_generation

if __name__ == "__main__":
    # 1. Merge an uploaded sales CSV into a user's monthly data.
    csv_processor = run_csv_pipeline.to_deployment(
        name="csv-processor",
        tags=["csv"],
        description="Merges uploaded sales CSVs in the background."
    )

    # 2. On-demand bulk generation
    bulk_generator = run_bulk_generation.to_deployment(
        name="bulk-generation-job",
        tags=["generation", "manual"],
        description="Generates a custom number of sales rows and ingests them for a user."
    )

    serve(csv_processor, bulk_generator, limit=1, pause_on_shutdown=False)
