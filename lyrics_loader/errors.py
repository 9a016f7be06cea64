class LyricsError(RuntimeError):
    pass


class SourceUnavailable(LyricsError):
    pass
