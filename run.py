# =============================================================================
# run.py — Starts the BookCopy backend (FastAPI) and then the Streamlit UI
# =============================================================================
# Usage: python run.py
# Backend: http://127.0.0.1:8000
# UI: http://127.0.0.1:8501
# =============================================================================

import os
import subprocess
import sys
import threading
import time
import urllib.request
import webbrowser

BACKEND_HOST = "127.0.0.1"
BACKEND_PORT = int(os.environ.get("BACKEND_PORT", "8000"))
STREAMLIT_PORT = int(os.environ.get("STREAMLIT_PORT", "8501"))

ROOT = os.path.dirname(os.path.abspath(__file__))


def wait_for_backend(url: str, timeout: float = 60.0) -> bool:
    print(f"Waiting for backend at {url}...", end="", flush=True)
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        try:
            with urllib.request.urlopen(f"{url}/health", timeout=2) as response:
                if response.status == 200:
                    print(" ready.")
                    return True
        except OSError:
            print(".", end="", flush=True)
            time.sleep(1)
    print(" timeout.")
    return False


def main() -> int:
    backend_url = f"http://{BACKEND_HOST}:{BACKEND_PORT}"
    env = os.environ.copy()
    env["BACKEND_URL"] = backend_url

    print(f"Starting backend on {backend_url}...")
    backend_proc = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn", "bookcopy.main:app",
            "--host", BACKEND_HOST,
            "--port", str(BACKEND_PORT),
        ],
        cwd=ROOT,
        env=env,
    )

    try:
        if not wait_for_backend(backend_url):
            print("Backend failed to start within timeout.")
            return 1

        ui_url = f"http://127.0.0.1:{STREAMLIT_PORT}"
        print(f"Starting Streamlit UI on {ui_url}...")
        threading.Timer(3.0, webbrowser.open, args=(ui_url,)).start()
        subprocess.run(
            [
                sys.executable, "-m", "streamlit", "run", "streamlit_app.py",
                "--server.port", str(STREAMLIT_PORT),
                "--server.address", "127.0.0.1",
                "--browser.gatherUsageStats", "false",
            ],
            cwd=ROOT,
            env=env,
        )
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        backend_proc.terminate()
        backend_proc.wait(timeout=5)
    return 0


if __name__ == "__main__":
    sys.exit(main())
