"""Main FastAPI application"""
from fastapi import Depends, FastAPI
from contact_widget.config import Settings, get_settings
from contact_widget.middleware.cors import setup_cors
from contact_widget.middleware.error_handler import setup_error_handlers
from contact_widget.services.rate_limiter import RateLimiter
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the application with a fresh rate limiter"""
    settings = get_settings()

    app = FastAPI(
        title="Contact Widget API",
        description="Embeddable contact form relay to Notion",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.rate_limiter = RateLimiter(
        window_seconds=settings.rate_limit_window_seconds,
        max_requests=settings.rate_limit_max_requests,
    )

    # CORS added last so it is the outermost layer
    setup_error_handlers(app)
    setup_cors(app)

    @app.get("/health")
    async def health_check(settings: Settings = Depends(get_settings)):
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "contact-widget",
            "notion_configured": settings.notion_configured,
        }

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Contact Widget API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    # Import and include routers
    from contact_widget.routers import contact, widget

    app.include_router(contact.router, prefix="/api/contact", tags=["Contact"])
    app.include_router(widget.router, prefix="/api/widget", tags=["Widget"])

    logger.info(f"Contact widget API created ({settings.environment})")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
