"""File uploads, downloads and filesystem utilities for tests."""

import csv
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Union

from playwright.async_api import Download, Page

from e2e_framework.utils.logger import TestLogger

PathLike = Union[str, Path]


class FileHelper:
    """Handle file uploads, downloads and scratch files for one page."""

    def __init__(
        self,
        page: Page,
        download_dir: Optional[PathLike] = None,
        upload_dir: Optional[PathLike] = None,
    ):
        self.page = page
        self.logger = TestLogger("FileHelper")
        self.download_dir = Path(download_dir or Path("test-results") / "downloads")
        self.upload_dir = Path(upload_dir or Path("src") / "data" / "uploads")
        self.download_dir.mkdir(parents=True, exist_ok=True)

    async def wait_for_download(
        self, action: Callable[[], Awaitable[Any]], save_name: Optional[str] = None
    ) -> Path:
        """Run ``action``, wait for the download it triggers and save it."""
        self.logger.info("Waiting for download...")
        async with self.page.expect_download() as download_info:
            await action()
        download = await download_info.value
        return await self.save_download(download, save_name)

    async def save_download(self, download: Download, save_name: Optional[str] = None) -> Path:
        file_path = self.download_dir / (save_name or download.suggested_filename)
        await download.save_as(str(file_path))
        self.logger.success(f"Download saved: {file_path}")
        return file_path

    def verify_download(self, file_path: PathLike, min_size_bytes: Optional[int] = None) -> bool:
        path = Path(file_path)
        if not path.exists():
            self.logger.error(f"File not found: {path}")
            return False
        if min_size_bytes is not None:
            size = path.stat().st_size
            if size < min_size_bytes:
                self.logger.error(f"File too small: {size} bytes (min {min_size_bytes})")
                return False
        self.logger.success(f"Download verified: {path}")
        return True

    def _resolve_upload(self, file_path: PathLike) -> str:
        """Resolve ``file_path``; relative names not found as given are looked up in ``upload_dir``."""
        path = Path(file_path)
        if not path.is_absolute() and not path.exists() and (self.upload_dir / path).exists():
            path = self.upload_dir / path
        resolved = path.resolve()
        if not resolved.exists():
            raise FileNotFoundError(f"Upload file not found: {resolved}")
        return str(resolved)

    async def upload_file(self, selector: str, file_path: PathLike) -> None:
        resolved = self._resolve_upload(file_path)
        self.logger.info(f"Uploading file: {resolved}")
        await self.page.set_input_files(selector, resolved)
        self.logger.success("File uploaded")

    async def upload_multiple_files(self, selector: str, file_paths: List[PathLike]) -> None:
        """Upload several files; nothing is uploaded if any path is missing."""
        resolved = [self._resolve_upload(path) for path in file_paths]
        self.logger.info(f"Uploading {len(resolved)} files")
        await self.page.set_input_files(selector, resolved)
        self.logger.success(f"{len(resolved)} files uploaded")

    async def clear_file_input(self, selector: str) -> None:
        await self.page.set_input_files(selector, [])
        self.logger.info("File input cleared")

    def read_json(self, file_path: PathLike) -> Any:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def write_json(self, file_path: PathLike, data: Any) -> Path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        self.logger.info(f"JSON written: {path}")
        return path

    def read_csv(self, file_path: PathLike, delimiter: str = ",") -> List[List[str]]:
        with open(file_path, "r", encoding="utf-8", newline="") as f:
            return [row for row in csv.reader(f, delimiter=delimiter) if row]

    def create_temp_file(self, file_name: str, content: Union[str, bytes]) -> Path:
        temp_dir = self.download_dir / "temp"
        temp_dir.mkdir(parents=True, exist_ok=True)
        path = temp_dir / file_name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        self.logger.info(f"Temp file created: {path}")
        return path

    def delete_file(self, file_path: PathLike) -> bool:
        """Remove a file if it exists; returns whether anything was deleted."""
        path = Path(file_path)
        if not path.is_file():
            return False
        path.unlink()
        self.logger.info(f"Deleted: {path}")
        return True

    def clean_downloads(self) -> int:
        """Delete regular files directly under the downloads directory."""
        removed = 0
        if self.download_dir.exists():
            for path in self.download_dir.iterdir():
                if path.is_file():
                    path.unlink()
                    removed += 1
            self.logger.info("Downloads directory cleaned")
        return removed
