#!/usr/bin/env python
"""Download and decompress yearly climate grids over HTTP."""

import gzip
import logging
import shutil
from pathlib import Path
from typing import Dict, Iterable, Optional

import requests
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from climate_grids.climate_config import DownloadConfig, get_config
from climate_grids.exceptions import GridDownloadError

logger = logging.getLogger(__name__)

console = Console()


class GridDownloader:
    """Fetches one compressed grid file per year and unpacks it."""

    def __init__(self, config: Optional[DownloadConfig] = None,
                 session: Optional[requests.Session] = None):
        """Initialize the downloader.

        Args:
            config: Download settings (defaults to the global configuration)
            session: Optional session, mainly for tests
        """
        self.config = config or get_config().download
        self._session = session or requests.Session()

    def build_url(self, year: int) -> str:
        """Build the download URL for a year."""
        return self.config.url_for(year)

    def archive_path(self, year: int) -> Path:
        """Local path of the compressed file for a year."""
        return self.config.download_dir / self.config.filename_for(year)

    def grid_path(self, year: int) -> Path:
        """Local path of the decompressed grid for a year."""
        archive = self.archive_path(year)
        return archive.with_suffix("") if archive.suffix == ".gz" else archive

    def download_year(self, year: int) -> Path:
        """Download the compressed grid for one year.

        Existing files are reused unless ``overwrite`` is set.

        Raises:
            GridDownloadError: If the request fails
        """
        url = self.build_url(year)
        target = self.archive_path(year)

        if target.exists() and not self.config.overwrite:
            logger.debug(f"Reusing existing file {target}")
            return target

        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")
        logger.debug(f"Downloading {url} -> {target}")

        try:
            with self._session.get(url, stream=True, timeout=self.config.timeout) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                        if chunk:
                            f.write(chunk)
        except requests.exceptions.RequestException as e:
            partial.unlink(missing_ok=True)
            logger.error(f"Download failed for {year}: {e}")
            raise GridDownloadError(
                f"Failed to download grid for {year}: {e}",
                url=url,
                response=getattr(e, "response", None),
            ) from e
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        partial.replace(target)
        logger.info(f"Downloaded {url} ({target.stat().st_size} bytes)")
        return target

    def decompress(self, path: Path, force: bool = False) -> Path:
        """Decompress a gzip file next to itself.

        Files without a ``.gz`` suffix are returned unchanged. An existing
        grid is kept only when it is at least as new as the archive and
        neither ``force`` nor ``overwrite`` is set.

        Raises:
            GridDownloadError: If the archive is corrupt
        """
        path = Path(path)
        if path.suffix != ".gz":
            return path

        target = path.with_suffix("")
        if (
            target.exists()
            and not (force or self.config.overwrite)
            and target.stat().st_mtime >= path.stat().st_mtime
        ):
            return target

        try:
            with gzip.open(path, "rb") as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except (OSError, EOFError) as e:
            target.unlink(missing_ok=True)
            raise GridDownloadError(f"Could not decompress {path}: {e}") from e

        logger.debug(f"Decompressed {path} -> {target}")
        return target

    def fetch_year(self, year: int) -> Path:
        """Download and decompress the grid for one year."""
        downloaded = self.config.overwrite or not self.archive_path(year).exists()
        return self.decompress(self.download_year(year), force=downloaded)

    def fetch_all(self, years: Optional[Iterable[int]] = None) -> Dict[int, Path]:
        """Download and decompress grids for all years, one after another.

        Args:
            years: Years to fetch (defaults to the configured years)

        Returns:
            Mapping of year to decompressed grid path
        """
        years = list(years) if years is not None else list(self.config.years)
        paths: Dict[int, Path] = {}

        console.print(f"[blue]Fetching {len(years)} yearly grids into[/blue] {self.config.download_dir}")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console
        ) as progress:
            task = progress.add_task("Downloading grids...", total=len(years))

            for year in years:
                progress.update(task, description=f"Downloading {year}...")
                paths[year] = self.fetch_year(year)
                progress.advance(task)

        console.print(f"[green]Fetched {len(paths)} grids[/green]")
        return paths

    def existing_grids(self, years: Optional[Iterable[int]] = None) -> Dict[int, Path]:
        """Locate already decompressed grids without touching the network.

        Raises:
            FileNotFoundError: If a grid is missing
        """
        years = list(years) if years is not None else list(self.config.years)
        paths = {}
        for year in years:
            path = self.grid_path(year)
            if not path.exists():
                raise FileNotFoundError(f"Grid for {year} not found: {path}")
            paths[year] = path
        return paths

    def close(self):
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
