"""
Run Fleet Sync API

Start the plugin generator server
"""

import uvicorn

from fleet_sync.config import get_settings


def main():
    """Start the FastAPI server"""
    settings = get_settings()
    protection = settings.protection_config()

    print(f"""
╔═══════════════════════════════════════════════════════════╗
║            Fleet Sync API - Starting Server              ║
╚═══════════════════════════════════════════════════════════╝

📊 API Information:
   • Port: {settings.port}
   • Plugin: http://localhost:{settings.port}/api/v1/getparams.execute
   • Docs: http://localhost:{settings.port}/docs

🛰️  Fleet:
   • Project: {settings.fleet_project_number}
   • Endpoint: {settings.fleet_api_endpoint}
   • Poll interval: {settings.reconcile_interval_seconds}s

🛡️  Protection:
   • Retries: {protection.max_retries} (base delay {protection.retry_base_delay})
   • Cache max age: {protection.cache_max_age}
   • Detection window: {protection.detection_window}
   • Oscillation threshold: {protection.oscillation_threshold}
   • Drop threshold: {protection.drop_threshold:.0%}

Starting server...
""")

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
