import logging
from pathlib import Path
from threading import Lock
from typing import Optional

from pydantic import BaseModel


logger = logging.getLogger(__name__)

FILE_EXTENSION = '.txt'
FIRST_FILE_ID = 1
ID_WIDTH = 6


class SubmitRequest(BaseModel):
    disease: Optional[str] = None
    description_bn: Optional[str] = None


class SubmitResponse(BaseModel):
    ok: bool
    message: str


class SubmissionStore:
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.lock = Lock()

    def next_file_id(self) -> str:
        """Return the id after the highest ``<digits>.txt`` in the data directory."""
        try:
            names = [p.name for p in self.data_dir.iterdir()]
        except FileNotFoundError:
            names = []

        stems = [name[:-len(FILE_EXTENSION)] for name in names if name.endswith(FILE_EXTENSION)]
        ids = [int(stem) for stem in stems if stem.isascii() and stem.isdigit()]

        next_id = max(ids) + 1 if ids else FIRST_FILE_ID
        return self._format_id(next_id)

    def _format_id(self, file_id: int) -> str:
        return str(file_id).zfill(ID_WIDTH)

    def submit(self, req: SubmitRequest) -> SubmitResponse:
        if not req.disease or not req.description_bn:
            raise ValueError("Both disease and description_bn are required")

        with self.lock:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            file_path = self._write_new(req.description_bn)

        logger.info(f"Stored description for '{req.disease}' as {file_path.name}")

        return SubmitResponse(ok=True, message="done")

    def _write_new(self, text: str) -> Path:
        file_id = int(self.next_file_id())
        while True:
            file_path = self.data_dir / f"{self._format_id(file_id)}{FILE_EXTENSION}"
            try:
                f = open(file_path, 'x', encoding='utf-8', newline='')
            except FileExistsError:
                # e.g. 000001.TXT on a case-insensitive filesystem
                logger.warning(f"{file_path.name} is taken, trying the next id")
                file_id += 1
                continue

            try:
                with f:
                    f.write(text)
            except Exception:
                file_path.unlink(missing_ok=True)
                raise

            return file_path
