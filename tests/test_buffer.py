import threading

import pytest

from pug.buffer import OutputBuffer


def test_new_reader_gives_independent_copies():
    buf = OutputBuffer()
    assert buf.write(b"hello world") == len(b"hello world")

    r1 = buf.new_reader()
    r2 = buf.new_reader()

    assert r1.read() == b"hello world"
    assert r2.read() == b"hello world"


def test_stream():
    buf = OutputBuffer()
    stream = buf.stream()

    buf.write(b"hello")
    assert next(stream) == b"hello"

    buf.write(b"world")
    assert next(stream) == b"world"

    buf.close()
    with pytest.raises(StopIteration):
        next(stream)


def test_stream_starts_from_beginning():
    buf = OutputBuffer()
    buf.write(b"early")
    buf.close()
    assert b"".join(buf.stream()) == b"early"


def test_stream_waits_for_writer_thread():
    buf = OutputBuffer()
    stream = buf.stream()

    def writer():
        buf.write(b"abc")
        buf.close()

    t = threading.Thread(target=writer)
    t.start()
    got = b"".join(stream)
    t.join()
    assert got == b"abc"


def test_write_after_close_raises():
    buf = OutputBuffer()
    buf.close()
    assert buf.closed
    with pytest.raises(ValueError):
        buf.write(b"x")