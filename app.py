#!/usr/bin/env python3
"""
Drum Synthesizer

Renders the sound of a struck membrane with an FDTD simulation and writes it to
a WAV file (or raw float32 samples when the output does not end in .wav).

Strike images (grayscale PNG, see create_strike.py):
  - Black (0): no displacement
  - White (255): full strike amplitude
  Rectangular drums use the whole image; circular drums use the inscribed disc.

Usage:
  python app.py drum.wav --shape circle --duration 1.5
  python app.py drum.wav --strike strikes/off_center.png --plot drum.png

  Or with a config file:
  python app.py drum.wav --config drum.json

Example drum.json:
{
    "shape": "rect",        // "rect" or "circle"
    "nx": 64, "ny": 64,     // rectangular grid size
    "wave_speed": 8000,     // rectangular wave speed (cells/s)
    "damping": 10.0,        // 1/s
    "duration": 2.0,        // seconds
    "sample_rate": 44100,
    "output_sr": 48000,     // optional, resample the output file
    "pickups": [[32, 32], [20, 40]]   // optional, one channel each
}
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

import numpy as np
import scipy.ndimage

import audio
from membrane import (
    AudioRenderer,
    CircularMembrane,
    FieldStrike,
    GaussianStrike,
    InvalidParameterError,
    MembraneSolver,
    NumericalInstabilityError,
    Pickup,
    RectangularMembrane,
    SimulationConfig,
    StabilityPolicy,
)


DEFAULTS: Dict[str, Any] = {
    'shape': 'rect',
    'sample_rate': 44100,
    'output_sr': None,        # resample the output file; None keeps sample_rate
    'duration': 2.0,
    'damping': None,          # per-shape default below
    'amplitude': 0.1,
    'spread': 0.01,
    'courant_limit': 0.25,
    'max_amplitude': 1e6,
    'normalize': True,
    'pickups': None,
    'strike': None,
    # rectangle
    'nx': 128,
    'ny': 128,
    'wave_speed': 10000.0,
    'spacing': 1.0,
    # circle
    'radius': 0.1,
    'tension': 10.0,
    'density': 0.1,
    'nr': 21,
    'ntheta': 32,
}

DEFAULT_DAMPING = {'rect': 10.0, 'circle': 5.0}


# =============================================================================
# Strike PNG
# =============================================================================

def load_strike_png(png_path: str, geometry, amplitude: float) -> np.ndarray:
    """Sample a grayscale strike image onto a membrane grid.

    Args:
        png_path: Path to PNG file
        geometry: CartesianGeometry or PolarGeometry of the target solver
        amplitude: Displacement for a white pixel

    Returns:
        Displacement field with geometry.shape
    """
    from PIL import Image

    img = Image.open(png_path).convert('L')
    pixels = np.asarray(img, dtype=np.float64) / 255.0
    height, width = pixels.shape

    # Normalized cell positions -> pixel coordinates (row 0 is the top of the image)
    x, y = geometry.normalized_coordinates()
    cols = (x + 1.0) / 2.0 * (width - 1)
    rows = (1.0 - y) / 2.0 * (height - 1)

    field = scipy.ndimage.map_coordinates(pixels, [rows, cols], order=1, mode='nearest')

    print(f"Loaded strike {png_path}: {width}x{height} pixels -> grid {geometry.shape}")
    return amplitude * field


# =============================================================================
# Simulation Setup
# =============================================================================

def create_membrane(settings: Dict[str, Any]) -> MembraneSolver:
    """Create a solver from merged settings and seed its initial condition."""
    shape = settings['shape']
    config = SimulationConfig(
        sample_rate=settings['sample_rate'],
        duration=settings['duration'],
        max_amplitude=settings['max_amplitude'],
        stability=StabilityPolicy(settings['courant_limit']),
        strike_amplitude=settings['amplitude'],
        strike_spread=settings['spread'],
    )
    damping = settings['damping']
    if damping is None:
        damping = DEFAULT_DAMPING.get(shape, 0.0)

    if shape == 'rect':
        solver = RectangularMembrane(
            settings['nx'], settings['ny'], damping, settings['wave_speed'],
            spacing=settings['spacing'], config=config,
        )
    elif shape == 'circle':
        solver = CircularMembrane.from_grid(
            settings['radius'], settings['tension'], settings['density'], None,
            settings['nr'], settings['ntheta'], damping=damping, config=config,
        )
    else:
        raise InvalidParameterError(f"Unknown shape '{shape}' (expected 'rect' or 'circle')")

    print(f"\nMembrane setup:")
    print(f"  Shape: {shape}, grid {solver.state.shape}")
    print(f"  Wave speed: {solver.wave_speed:.3f}")
    print(f"  Time step: {solver.dt:.3e} s")
    print(f"  CFL number: {solver.courant:.4f} (limit {config.stability.threshold})")

    if settings['strike']:
        field = load_strike_png(settings['strike'], solver.geometry, settings['amplitude'])
        solver.set_initial_condition(FieldStrike(field))
    else:
        solver.set_initial_condition(GaussianStrike(settings['amplitude'], settings['spread']))
    return solver


def create_pickups(settings: Dict[str, Any], solver: MembraneSolver) -> List[Pickup]:
    positions = settings['pickups']
    if not positions:
        i, j = solver.default_pickup()
        return [Pickup(i, j)]
    return [Pickup(i, j, name=f"pickup{k}") for k, (i, j) in enumerate(positions)]


def run_simulation(solver: MembraneSolver, pickups: List[Pickup], num_samples: int,
                   progress_every: int = 10000) -> np.ndarray:
    """Render num_samples samples, reporting progress.

    Returns:
        Array of shape (num_samples,) or (num_samples, len(pickups))
    """
    renderer = AudioRenderer(solver, pickups)

    print(f"\nRunning simulation:")
    print(f"  Total steps: {num_samples}")
    print(f"  Pickups: {[(p.i, p.j) for p in pickups]}")

    blocks = []
    done = 0
    for block in renderer.stream(num_samples, block_size=progress_every):
        blocks.append(block)
        done += len(block)
        print(f"  Step {done}/{num_samples}, max |u| = {solver.max_displacement():.4g}")

    print(f"  Simulation complete!")
    if not blocks:
        return np.zeros((0,) if len(pickups) == 1 else (0, len(pickups)))
    return np.concatenate(blocks, axis=0)


def save_recording(samples: np.ndarray, output_path: str, sample_rate: float,
                   normalize: bool = True, output_sr: Optional[int] = None):
    """Write a WAV file for .wav paths, raw float32 otherwise.

    Both formats are resampled to output_sr when it is given.
    """
    if output_sr is not None and output_sr <= 0:
        raise InvalidParameterError(f"output_sr must be positive, got {output_sr}")

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    if os.path.splitext(output_path)[1].lower() == '.wav':
        audio.save_wav(output_path, samples, sample_rate, target_sr=output_sr,
                       normalize_audio=normalize)
    else:
        if output_sr is not None:
            samples = audio.resample(samples, sample_rate, output_sr)
        audio.save_raw(output_path, samples)


def plot_recording(solver: MembraneSolver, samples: np.ndarray, filename: str):
    """Save a figure with the pickup waveform and the final membrane field."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    fig, (ax_wave, ax_field) = plt.subplots(1, 2, figsize=(12, 4))

    t = np.arange(len(samples)) / solver.config.sample_rate
    ax_wave.plot(t, samples, linewidth=0.8)
    ax_wave.set_title('Pickup signal')
    ax_wave.set_xlabel('Time (s)')
    ax_wave.set_ylabel('Displacement')
    ax_wave.grid(True, alpha=0.3)

    x, y = solver.geometry.normalized_coordinates()
    field = solver.state.curr
    vmax = max(1e-12, float(np.max(np.abs(field))))
    im = ax_field.pcolormesh(x, y, field, cmap='RdBu_r', vmin=-vmax, vmax=vmax, shading='auto')
    ax_field.set_aspect('equal')
    ax_field.set_title(f'Membrane at step {solver.step_count}')
    fig.colorbar(im, ax=ax_field, label='Displacement')

    plt.tight_layout()
    plt.savefig(filename, dpi=150)
    plt.close(fig)
    print(f"Saved plot to {filename}")


# =============================================================================
# CLI
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Render a struck drum membrane to audio.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('output', help='Output path (.wav for PCM WAV, anything else for raw float32)')
    parser.add_argument('-c', '--config', help='JSON config file path')
    parser.add_argument('--shape', choices=['rect', 'circle'],
                        help="Membrane shape (default: rect)")
    parser.add_argument('--duration', type=float,
                        help='Simulation duration in seconds (default: 2.0)')
    parser.add_argument('--sample-rate', type=int,
                        help='Sample rate in Hz, one sample per step (default: 44100)')
    parser.add_argument('--output-sr', type=int,
                        help='Resample the output file to this rate (default: sample rate)')
    parser.add_argument('--damping', type=float,
                        help='Damping coefficient in 1/s (default: 10 rect, 5 circle)')
    parser.add_argument('--amplitude', type=float,
                        help='Strike amplitude (default: 0.1)')
    parser.add_argument('--spread', type=float,
                        help='Gaussian strike spread (default: 0.01)')
    parser.add_argument('--strike', help='Grayscale strike PNG (replaces the Gaussian strike)')
    parser.add_argument('--no-normalize', dest='normalize', action='store_false', default=None,
                        help='Clamp instead of normalizing before PCM conversion')
    parser.add_argument('--plot', help='Save waveform and membrane plot to this PNG')
    return parser


def merge_settings(args: argparse.Namespace, config: Dict[str, Any]) -> Dict[str, Any]:
    """DEFAULTS < config file < explicit command-line flags."""
    settings = dict(DEFAULTS)
    unknown = set(config) - set(DEFAULTS)
    if unknown:
        raise InvalidParameterError(f"Unknown config keys: {sorted(unknown)}")
    settings.update(config)

    cli = {
        'shape': args.shape,
        'duration': args.duration,
        'sample_rate': args.sample_rate,
        'output_sr': args.output_sr,
        'damping': args.damping,
        'amplitude': args.amplitude,
        'spread': args.spread,
        'strike': args.strike,
        'normalize': args.normalize,
    }
    settings.update({key: value for key, value in cli.items() if value is not None})
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = {}
        if args.config:
            with open(args.config) as f:
                config = json.load(f)

        settings = merge_settings(args, config)
        solver = create_membrane(settings)
        pickups = create_pickups(settings, solver)
        samples = run_simulation(solver, pickups, solver.num_samples)
        save_recording(samples, args.output, solver.config.sample_rate,
                       normalize=settings['normalize'], output_sr=settings['output_sr'])
        if args.plot:
            plot_recording(solver, samples, args.plot)
    except (InvalidParameterError, NumericalInstabilityError, OSError, json.JSONDecodeError) as e:
        print(f"\nError: {e}")
        return 1

    print(f"\nDone! Audio saved to {args.output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
