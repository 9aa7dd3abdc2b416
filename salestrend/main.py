# salestrend/main.py
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, File, HTTPException, Path, Query, Request, UploadFile
from sqlalchemy import Engine

from . import processing
from .config import settings
from .database import init_db, make_engine
from .exceptions import InputRejected, NotFound, StorageFailure
from .llm import TextGenerator
from .logging_config import configure_logging
from .schemas import (
    ForecastOut,
    IngestOut,
    AnalyticsOut,
    MonthlySummaryOut,
    RejectedRowOut,
    SalesRowsIn,
    TransactionOut,
    analytics_out,
    data_quality_out,
    forecast_out,
)
from .service import SalesEngine
from .storage import SalesStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = configure_logging(settings.LOG_LEVEL)
    # The engine owns the connection pool for the life of the process
    engine = make_engine()
    init_db(engine)
    app.state.engine = engine
    logger.info("Sales data service started")
    try:
        yield
    finally:
        engine.dispose()


app = FastAPI(
    title="Sales Trend API",
    description="API for uploading monthly sales data and projecting sales trends.",
    lifespan=lifespan,
)

# Dependency function for engine
def get_engine(request: Request):
    yield request.app.state.engine

# Dependency function for the optional text-generation provider
def get_text_generator() -> Optional[TextGenerator]:
    return TextGenerator()

def get_sales_engine(
    engine: Engine = Depends(get_engine),
    generator: Optional[TextGenerator] = Depends(get_text_generator),
) -> SalesEngine:
    return SalesEngine(SalesStore(engine), generator)


# This is the route for the root URL "/"
@app.get("/")
def read_root():
    return {"message": "Welcome to the Sales Trend API"}

@app.post("/monthly-data/{user_id}", response_model=IngestOut)
def ingest_sales(user_id: int, payload: SalesRowsIn, sales: SalesEngine = Depends(get_sales_engine)):
    """
    Merges raw sales rows into the user's monthly data and returns the
    recomputed months, rejected rows, analytics and next-month projection.
    """
    try:
        result = sales.ingest(user_id, payload.rows)
    except StorageFailure as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save sales data for {e.year}-{e.month:02d}; no changes were stored.",
        )

    return IngestOut(
        summaries=[MonthlySummaryOut.from_domain(s) for s in result.summaries],
        data_quality=data_quality_out(result.report),
        rejected=[RejectedRowOut(row_index=r.row_index, reasons=r.reasons) for r in result.rejected],
        projection=result.projection,
        analytics=analytics_out(result.analytics),
        ai_insight=result.ai_insight,
    )

@app.post("/upload/{user_id}")
async def upload_csv(
    user_id: int,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    engine: Engine = Depends(get_engine)
):
    """
    Uploads a CSV file of sales rows and merges it in the background.
    - **file**: CSV with at least date, price and quantity columns.
    """
    # 1. Validate the file type
    if not file.filename.lower().endswith('.csv'):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a CSV.")

    try:
        # 2. Read the file contents into memory
        contents = await file.read()

        # 3. Validate CSV format before processing
        processing.validate_csv_format(contents)

        # 4. Merge in the background
        background_tasks.add_task(processing.process_csv_to_db, contents, user_id, engine)

        return {
            "message": f"File '{file.filename}' accepted and is being processed in the background."
        }

    except InputRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/monthly-data/{user_id}", response_model=List[MonthlySummaryOut])
def list_monthly_data(
    user_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    sales: SalesEngine = Depends(get_sales_engine),
):
    """Stored monthly summaries, newest first, optionally filtered by year and month."""
    return [MonthlySummaryOut.from_domain(s) for s in sales.monthly_data(user_id, year, month)]

@app.get("/monthly-data/{user_id}/{year}/{month}", response_model=List[TransactionOut])
def get_month_transactions(
    user_id: int,
    year: int,
    month: int = Path(..., ge=1, le=12),
    sales: SalesEngine = Depends(get_sales_engine),
):
    try:
        return [TransactionOut.from_domain(t) for t in sales.month_transactions(user_id, year, month)]
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

@app.delete("/monthly-data/{user_id}/{year}/{month}")
def delete_monthly_data(
    user_id: int,
    year: int,
    month: int = Path(..., ge=1, le=12),
    sales: SalesEngine = Depends(get_sales_engine),
):
    try:
        sales.delete_month(user_id, year, month)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Monthly data deleted successfully"}

@app.get("/analytics/{user_id}", response_model=AnalyticsOut)
def get_analytics(user_id: int, sales: SalesEngine = Depends(get_sales_engine)):
    """All-time summary, monthly trend with projection, category breakdown and insights."""
    return analytics_out(sales.analytics(user_id))

@app.post("/forecast", response_model=ForecastOut)
def forecast(payload: SalesRowsIn, sales: SalesEngine = Depends(get_sales_engine)):
    """Projects next month's sales from raw rows without storing them."""
    if not payload.rows:
        raise HTTPException(status_code=400, detail="Missing data")

    result = sales.forecast(payload.rows)
    return ForecastOut(
        forecast=forecast_out(result.forecast),
        data_quality=data_quality_out(result.report),
        insight=result.insight,
        ai_insight=result.ai_insight,
    )
