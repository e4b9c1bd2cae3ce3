class SchemaError(ValueError):
    """The schema document is missing required structure or has an unsupported shape."""


class DecodeError(ValueError):
    """Base class for failures while decoding a binary record stream."""


class InvalidStrideError(DecodeError):
    def __init__(self, stride: int):
        super().__init__(f"Invalid stride computed from attributes: {stride}")
        self.stride = stride


class TruncatedRecordError(DecodeError):
    def __init__(self, index: int, expected: int, got: int):
        super().__init__(f"Stream ended inside record {index}: expected {expected} bytes, got {got}")
        self.index = index
        self.expected = expected
        self.got = got
