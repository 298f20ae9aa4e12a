"""
Output of Docker image pulls, image builds and build containers
"""

from typing import TextIO


class StreamWriter:
    """
    Writes Docker output to ``stream``, flushing after each write when ``auto_flush`` is set so that progress shows
    up while a long build runs
    """

    def __init__(self, stream: TextIO, auto_flush: bool = False):
        self._stream = stream
        self._auto_flush = auto_flush

    def write_str(self, output: str) -> None:
        self._stream.write(output)

        if self._auto_flush:
            self._stream.flush()
