from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from discount_api.config import Config
from discount_api.database import Base, engine
from discount_api.exceptions import DiscountError, Ineligible
from discount_api.logger import setup_logging
from discount_api.models import discount as discount_model  # noqa: F401
from discount_api.models import business_rule as business_rule_model  # noqa: F401
from discount_api.routers import business_rules as business_rules_router
from discount_api.routers import discounts as discounts_router

setup_logging()

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=Config.API_TITLE,
    description="RESTful API to manage discounts, check eligibility and apply them to orders",
    version=Config.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(business_rules_router.router)
app.include_router(discounts_router.router)


@app.get("/health")
def health():
    return {"status": "healthy"}


# Proper JSON error with correct status code
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"status_code": exc.status_code, "detail": exc.detail}},
    )


@app.exception_handler(DiscountError)
async def discount_error_handler(request: Request, exc: DiscountError):
    error = {"status_code": exc.status_code, "detail": exc.detail}
    if isinstance(exc, Ineligible):
        error["reasons"] = exc.reasons
    return JSONResponse(status_code=exc.status_code, content={"error": error})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("discount_api.main:app", host="0.0.0.0", port=8000, reload=True)
