"""
Run the Ads Platform Manager dashboard
"""
import uvicorn
from ads_manager.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "ads_manager.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
