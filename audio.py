"""
Audio output for membrane recordings.

Solver output is raw physical displacement with no fixed range. Everything that
leaves this module as fixed-point PCM is normalized or clamped to [-1, 1] first,
so out-of-range values saturate instead of wrapping around.
"""

from typing import Optional

import numpy as np
import scipy.signal
import scipy.io.wavfile as wavfile


def normalize(samples: np.ndarray, peak: float = 1.0) -> np.ndarray:
    """Scale samples so the largest magnitude equals peak. Silence is left as is."""
    samples = np.asarray(samples, dtype=np.float64)
    max_val = np.max(np.abs(samples)) if samples.size else 0.0
    if max_val > 0:
        return samples * (peak / max_val)
    return samples.copy()


def clamp(samples: np.ndarray) -> np.ndarray:
    return np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)


def to_pcm16(samples: np.ndarray, normalize_audio: bool = True) -> np.ndarray:
    """Convert float samples to 16-bit PCM.

    Args:
        samples: Float samples, shape (n,) or (n, channels)
        normalize_audio: Scale to full range first; otherwise only clamp

    Returns:
        int16 array with the same shape
    """
    samples = np.asarray(samples, dtype=np.float64)
    if not np.all(np.isfinite(samples)):
        raise ValueError("Cannot encode non-finite samples")
    if normalize_audio:
        samples = normalize(samples)
    return np.round(clamp(samples) * 32767).astype(np.int16)


def resample(samples: np.ndarray, native_sr: float, target_sr: int) -> np.ndarray:
    """Resample along the time axis with scipy's FFT resampler."""
    samples = np.asarray(samples, dtype=np.float64)
    if native_sr == target_sr or len(samples) == 0:
        return samples
    duration = len(samples) / native_sr
    num_samples = max(1, int(round(duration * target_sr)))
    return scipy.signal.resample(samples, num_samples, axis=0)


def save_wav(filename: str, samples: np.ndarray, sample_rate: float,
             target_sr: Optional[int] = None, normalize_audio: bool = True):
    """Save samples as a 16-bit PCM WAV file.

    Args:
        filename: Output filename (should end in .wav)
        samples: Float samples, shape (n,) or (n, channels)
        sample_rate: Rate the samples were rendered at
        target_sr: Resample to this rate before writing (default: no resampling)
        normalize_audio: Normalize to full scale; otherwise clamp to [-1, 1]
    """
    sr = int(round(sample_rate))
    if target_sr is not None and target_sr != sr:
        samples = resample(samples, sample_rate, target_sr)
        sr = target_sr

    audio_int = to_pcm16(samples, normalize_audio=normalize_audio)
    wavfile.write(filename, sr, audio_int)

    duration = len(audio_int) / sr
    print(f"Saved {duration:.3f}s of audio to {filename} ({sr}Hz, 16-bit)")


def save_raw(filename: str, samples: np.ndarray):
    """Save samples as raw little-endian float32, without a header."""
    data = np.asarray(samples, dtype='<f4')
    with open(filename, 'wb') as f:
        f.write(data.tobytes())
    print(f"Saved {len(data)} raw float32 samples to {filename}")
