from typing import Optional


class InstructionsSource:
    def __init__(self, path: Optional[str] = None):
        self.path = path

    def read(self) -> str:
        if not self.path:
            raise ValueError("Failed to read instructions: no instructions path configured")

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ValueError(f"Failed to read instructions: {e}") from e
