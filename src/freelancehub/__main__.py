"""freelancehub entrypoint.

Run with:
  python -m freelancehub
"""

import os

import uvicorn
from dotenv import load_dotenv

def main() -> None:
    load_dotenv()
    host = os.getenv("FH_HOST", "0.0.0.0")
    port = int(os.getenv("FH_PORT", "3000"))
    reload = os.getenv("FH_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("freelancehub.app:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
