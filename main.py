# main.py
from fastapi.middleware.cors import CORSMiddleware
import os
from dotenv import load_dotenv

# Load environment variables before any module reads its settings
load_dotenv()

from fastapi import FastAPI, Request, Response
from services.supabase_service import init_supabase_service, get_supabase_service
from services.auth_service import initialize_firebase
from api import measurements, calendar_events, profile

# Initialize FastAPI app
app = FastAPI(
    title="Health Tracker Backend",
    description="Weight and body-fat tracking, calendar and profile API",
    version="1.0.0"
)

cors_origins = os.getenv("CORS_ORIGINS", "*")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services on startup
@app.on_event("startup")
async def startup_event():
    """Initialize services when the app starts"""
    print("🚀 Starting Health Tracker Backend...")

    try:
        init_supabase_service()
        print("✅ Supabase service initialized")

        initialize_firebase()

        print("🎉 Backend startup complete!")

    except Exception as e:
        print(f"❌ Error during startup: {e}")
        raise

# Include API routers
app.include_router(measurements.router)
app.include_router(calendar_events.router)
app.include_router(profile.router)

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": "Health Tracker Backend API",
        "version": "1.0.0",
        "status": "running",
        "features": ["measurements", "measurement_history", "calendar", "profile"]
    }

@app.options("/{rest_of_path:path}")
async def preflight_handler(request: Request, rest_of_path: str):
    """Handle CORS preflight requests"""
    response = Response()
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "*"
    return response

# Health check endpoint
@app.get("/health")
async def health_check():
    try:
        supabase_service = get_supabase_service()
        supabase_health = await supabase_service.health_check()

        return {
            "status": supabase_health["status"],
            "services": {
                "api": "healthy",
                "supabase": supabase_health
            }
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "message": "Some services are down"
        }

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
