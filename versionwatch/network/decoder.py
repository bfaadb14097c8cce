"""JSON descriptor decoder."""

import json

from versionwatch.core.errors import DecodeError
from versionwatch.core.models import VersionDescriptor


class JsonDescriptorDecoder:
    """Turns raw response bytes into a VersionDescriptor."""

    encoding = 'utf-8'

    def decode(self, payload: bytes) -> VersionDescriptor:
        try:
            data = json.loads(payload.decode(self.encoding))
        # ValueError covers bad UTF-8, bad JSON and over-long integer literals
        except (ValueError, RecursionError) as e:
            raise DecodeError(f"Invalid descriptor payload: {e}") from e
        return VersionDescriptor.from_dict(data)
