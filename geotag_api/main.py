import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geotag_api.config import get_settings
from geotag_api.routers.geotag import router as geotag_router


def create_app() -> FastAPI:
	settings = get_settings()
	logging.basicConfig(
		level=settings.log_level.upper(),
		format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	)

	app = FastAPI(title="Photo Geotagger API", version="0.1.0")

	# CORS (adjust origins in production)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.cors_origins,
		allow_credentials=False,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	# Routers
	app.include_router(geotag_router)

	@app.get("/api/health", tags=["health"])
	def health():
		return {"status": "ok"}

	return app


app = create_app()


if __name__ == "__main__":
	# Local dev server: uvicorn geotag_api.main:app --reload
	import uvicorn

	uvicorn.run("geotag_api.main:app", host="0.0.0.0", port=3000, reload=True)
