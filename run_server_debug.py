"""Run the group chat API with uvicorn in reload mode (debug)."""

import io
import os
import socket
import sys

# Fix encoding
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

from dotenv import load_dotenv
load_dotenv()

from groupchat.api.config import settings


def is_port_in_use(port):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        return s.connect_ex(('localhost', port)) == 0


if __name__ == "__main__":
    port = settings.api_port

    if is_port_in_use(port):
        print(f"Port {port} is already in use.")
        print("Stop the other process or set API_PORT in .env")
        sys.exit(1)

    print("=" * 80)
    print(f"Group chat API: http://{settings.api_host}:{port}")
    print(f"Docs:           http://localhost:{port}/docs")
    print("=" * 80)

    import uvicorn

    project_root = os.path.dirname(os.path.abspath(__file__))
    package_dir = os.path.join(project_root, "groupchat")

    log_level = os.getenv("UVICORN_LOG_LEVEL", "info")
    try:
        uvicorn.run(
            "groupchat.api.main:app",
            host=settings.api_host,
            port=port,
            log_level=log_level,
            access_log=True,
            use_colors=True,
            reload=True,
            reload_dirs=[package_dir],
        )
    except KeyboardInterrupt:
        print("\nServer stopped")
