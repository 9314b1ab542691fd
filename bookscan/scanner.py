"""Scan capability: anything that hands back a raw identifier string."""
import random
from typing import Callable, Optional, Protocol, Sequence
import logging

from bookscan.errors import ScanError

logger = logging.getLogger(__name__)

# Real ISBNs used for demo scans
SAMPLE_ISBNS = (
    "9780143127741",  # Sapiens
    "9780316769174",  # The Catcher in the Rye
    "9780544003415",  # The Lord of the Rings
    "9780451524935",  # 1984
    "9780142424179",  # The Fault in Our Stars
    "9780061120084",  # To Kill a Mockingbird
    "9780307277671",  # The Da Vinci Code
    "9788804668827",  # Io sono Malala
    "9788817050814",  # L'alchimista
    "9788806220655",  # Se questo e un uomo
)


class Scanner(Protocol):
    def scan(self) -> str:
        """Return the decoded raw string, or raise ScanError."""
        ...


class ManualScanner:
    """Reads an identifier typed by the user."""

    def __init__(self, prompt: str = "ISBN: ", read: Callable[[str], str] = input):
        self.prompt = prompt
        self.read = read

    def scan(self) -> str:
        try:
            raw = self.read(self.prompt)
        except (EOFError, KeyboardInterrupt):
            raise ScanError("Scan cancelled")

        raw = raw.strip()
        if not raw:
            raise ScanError("No identifier entered")
        return raw


class SampleScanner:
    """Simulates a camera scan by picking a known ISBN."""

    def __init__(self, isbns: Sequence[str] = SAMPLE_ISBNS, rng: Optional[random.Random] = None):
        if not isbns:
            raise ValueError("SampleScanner needs at least one ISBN")
        self.isbns = list(isbns)
        self.rng = rng or random.Random()

    def scan(self) -> str:
        isbn = self.rng.choice(self.isbns)
        logger.info(f"Simulated scan: {isbn}")
        return isbn
