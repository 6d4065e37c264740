import struct
from datetime import datetime

import numpy as np

from monitor.capture_encoder import WAV_HEADER_SIZE, capture_filename, decode, encode, sanitize_label

CAPTURE_TIME = datetime(2026, 3, 14, 9, 26, 53, 589000)


def test_wav_header_fields() -> None:
    samples = np.array([0, 1, -1, 32767, -32768], dtype=np.int16)
    payload = encode(samples, 44100)

    assert len(payload) == WAV_HEADER_SIZE + 2 * len(samples)
    assert payload[0:4] == b"RIFF"
    assert struct.unpack("<I", payload[4:8])[0] == len(payload) - 8
    assert payload[8:16] == b"WAVEfmt "

    fmt_size, audio_format, channels, rate, byte_rate, block_align, bits = struct.unpack("<IHHIIHH", payload[16:36])
    assert (fmt_size, audio_format, channels) == (16, 1, 1)
    assert rate == 44100
    assert byte_rate == 88200
    assert (block_align, bits) == (2, 16)

    assert payload[36:40] == b"data"
    assert struct.unpack("<I", payload[40:44])[0] == 2 * len(samples)
    assert struct.unpack("<5h", payload[44:]) == (0, 1, -1, 32767, -32768)


def test_decode_recovers_samples_and_rate() -> None:
    samples = (np.sin(np.linspace(0, 20, 1600)) * 12000).astype(np.int16)
    rate, decoded = decode(encode(samples, 16000))
    assert rate == 16000
    np.testing.assert_array_equal(decoded, samples)


def test_empty_capture_is_header_only() -> None:
    assert len(encode(np.zeros(0, dtype=np.int16), 44100)) == WAV_HEADER_SIZE


def test_filename_includes_label_and_millisecond_timestamp() -> None:
    assert capture_filename("Siren", CAPTURE_TIME) == "capture_Siren_2026-03-14_09-26-53-589.wav"


def test_filename_sanitizes_unsafe_characters() -> None:
    name = capture_filename("Vehicle horn, car horn/honking", CAPTURE_TIME)
    assert name == "capture_Vehicle_horn__car_horn_honking_2026-03-14_09-26-53-589.wav"


def test_label_is_truncated_to_thirty_characters() -> None:
    assert len(sanitize_label("x" * 80)) == 30


def test_empty_label_is_omitted() -> None:
    assert capture_filename("", CAPTURE_TIME) == "capture_2026-03-14_09-26-53-589.wav"
    assert capture_filename(None, CAPTURE_TIME) == "capture_2026-03-14_09-26-53-589.wav"
