#!/usr/bin/env python3
"""
Build script for the quote service Lambda functions.

All handlers ship in one deployment package; each function points its handler
setting at a different module, e.g. ``quote_service.handlers.quotes_handler.lambda_handler``.
"""
import os
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path

PACKAGE_NAME = "quote_service"

HANDLERS = [
    "quotes_handler",
    "draft_orders_handler",
    "files_handler",
    "notifications_handler",
    "health_handler",
]


def main():
    """Main build function"""
    project_root = Path(__file__).parent.parent
    package_dir = project_root / "src" / PACKAGE_NAME
    build_dir = project_root / "build"
    zip_path = build_dir / f"{PACKAGE_NAME}.zip"

    # Create build directory
    build_dir.mkdir(exist_ok=True)

    temp_dir = build_dir / f"temp_{PACKAGE_NAME}"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir()

    print(f"Building {PACKAGE_NAME}...")
    shutil.copytree(
        package_dir,
        temp_dir / PACKAGE_NAME,
        ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
    )

    # Install runtime dependencies declared in pyproject.toml
    print("Installing dependencies...")
    subprocess.run([
        sys.executable, "-m", "pip", "install",
        str(project_root),
        "-t", str(temp_dir),
        "--upgrade",
    ], check=True)

    # The project itself is already copied from source
    for installed in temp_dir.glob(f"{PACKAGE_NAME}-*.dist-info"):
        shutil.rmtree(installed)

    print(f"Creating {zip_path.name}...")
    with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
        for root, _, files in os.walk(temp_dir):
            for file in files:
                file_path = Path(root) / file
                arcname = file_path.relative_to(temp_dir)
                zipf.write(file_path, arcname)

    shutil.rmtree(temp_dir)

    print(f"{zip_path.name} created ({zip_path.stat().st_size} bytes)")
    print("Handler entry points:")
    for handler in HANDLERS:
        print(f"  {PACKAGE_NAME}.handlers.{handler}.lambda_handler")

    print("Build complete!")


if __name__ == "__main__":
    main()
