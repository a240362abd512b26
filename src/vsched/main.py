# src/vsched/main.py
from __future__ import annotations

from vsched.config import load_settings
from vsched.logging import configure_logging, get_logger


def main() -> int:
    """
    Programmatic entrypoint.

    Recommended dev command:
      uvicorn vsched.api.app:app --reload

    This entrypoint exists so you can also do:
      python -m vsched.main
    """
    settings = load_settings()
    configure_logging(settings.log_level)
    log = get_logger(__name__)

    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    log.info(
        "Starting vesting scheduler with DB path: %s (custody address: %s)",
        settings.db_path,
        settings.custody_address,
    )

    # Import here so config/logging are set before app import side-effects.
    try:
        from vsched.api.app import app  # noqa: F401
    except Exception:
        log.exception("Failed to import FastAPI app (vsched.api.app:app).")
        return 1

    import uvicorn

    uvicorn.run(
        "vsched.api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        reload=False,  # prefer `uvicorn ... --reload` in dev
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
