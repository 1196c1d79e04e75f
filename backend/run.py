"""
MotoPay Backend — Uvicorn Launcher
Run this file to start the development server.

Usage:
    python run.py
    python run.py --port 8000
    python run.py --reload
    python run.py --seed        # create tables and load the default compliance catalog
"""
import argparse
import uvicorn


def seed():
    from motopay.config import get_settings
    from motopay.database import SessionLocal, init_db
    from motopay.logging_config import configure_logging
    from motopay.services import AuditService, ComplianceService

    configure_logging(get_settings())
    init_db()
    db = SessionLocal()
    try:
        created = ComplianceService(AuditService()).seed_catalog(db)
    finally:
        db.close()
    print(f"Seeded {created} compliance catalog items.")


def main():
    parser = argparse.ArgumentParser(description="MotoPay Vehicle Licensing Backend Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload for development")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers (default: 1)")
    parser.add_argument("--seed", action="store_true", help="Seed the compliance catalog and exit")

    args = parser.parse_args()

    if args.seed:
        seed()
        return

    print(f"""
    ========================================================
      MotoPay Vehicle Licensing -- Backend Server
      API:     http://{args.host}:{args.port}
      Docs:    http://localhost:{args.port}/docs
      ReDoc:   http://localhost:{args.port}/redoc
    ========================================================
    """)

    uvicorn.run(
        "motopay.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level="info",
    )


if __name__ == "__main__":
    main()
