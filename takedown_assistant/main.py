"""
Entry point for the Takedown Letter Assistant API server.
"""

import logging
import os

import uvicorn


def main():
    """Main entry point for the application."""
    logging.getLogger(__name__).info("Starting Takedown Letter Assistant")

    # Get port from environment or use default
    port = int(os.getenv("PORT", "8000"))

    # The factory configures logging before building the app
    uvicorn.run(
        "takedown_assistant.api.app:get_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    main()
