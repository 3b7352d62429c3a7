import base64
import hashlib

# Every key produced by Sha256HashGenerator has this many ASCII characters,
# which lets the binary writer use its fixed hash length header.
HASH_LENGTH = 11


class HashGenerator:
    """Maps natural text to the stable key used by every catalog format."""

    def digest(self, natural_text: str) -> str:
        raise NotImplementedError

    def generate_hash(self, natural_text: str, context: str | None = None) -> str:
        # Context is part of the message identity, it is hashed together with the text
        if context is not None:
            natural_text = f"{context}:{natural_text}"
        return self.digest(natural_text)


class Sha256HashGenerator(HashGenerator):
    def __init__(self, length: int = HASH_LENGTH) -> None:
        self.length = length

    def digest(self, natural_text: str) -> str:
        digest = hashlib.sha256(natural_text.encode("utf-8")).digest()
        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")[: self.length]


def generate_hash(natural_text: str, context: str | None = None) -> str:
    return _default_generator.generate_hash(natural_text, context)


_default_generator = Sha256HashGenerator()
