from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from database import Base, engine
from datetime import datetime
import os
import models  # noqa: F401  registers every table on Base.metadata
import routers.app_config as app_config
import routers.chart_of_accounts as chart_of_accounts
import routers.vendors as vendors
import routers.purchase_orders as purchase_orders
import routers.goods_receipts as goods_receipts
import routers.purchase_invoices as purchase_invoices
import routers.purchase_input as purchase_input
import routers.cash_book as cash_book
import routers.journal_entry as journal_entry
import routers.adjustment_journals as adjustment_journals
import routers.financial_reports as financial_reports
import logging
from fastapi.openapi.utils import get_openapi


LOG_DIR = "logs"
os.makedirs(LOG_DIR, exist_ok=True) # Create 'logs' directory if it doesn't exist

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Finance Back Office API",
        version="1.0.0",
        description="Purchasing, invoice intake, cash book, journals and profit-and-loss reporting",
        routes=app.routes,
    )
    # Every tenant-scoped endpoint needs the X-Tenant-ID header
    openapi_schema["components"]["securitySchemes"] = {
        "TenantHeader": {
            "type": "apiKey",
            "in": "header",
            "name": "X-Tenant-ID",
        }
    }
    openapi_schema["security"] = [{"TenantHeader": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(app_config.router)
app.include_router(chart_of_accounts.router)
app.include_router(vendors.router)
app.include_router(purchase_orders.router)
app.include_router(goods_receipts.router)
app.include_router(purchase_invoices.router)
app.include_router(purchase_input.router)
app.include_router(cash_book.router)
app.include_router(journal_entry.router)
app.include_router(adjustment_journals.router)
app.include_router(financial_reports.router)

@app.get("/")
async def test_route():
    return {"message": "Welcome to the Finance Back Office API!"}
