"""Render a small family of harmonic tones in parallel and save them as WAV files."""

from pathlib import Path

import harmonictone as ht

OUTPUT_DIR = Path("tones")

configs = [
    ht.ToneConfig(fundamental_hz=110.0, phase=0.0, slope_db_per_octave=3.0),
    ht.ToneConfig(fundamental_hz=110.0, phase="random", slope_db_per_octave=0.0),
    ht.ToneConfig(fundamental_hz=110.0, phase="random", slope_db_per_octave=-6.0),
]

OUTPUT_DIR.mkdir(exist_ok=True)
for index, tone in enumerate(ht.render_many(configs, seed=2013)):
    path = tone.save(OUTPUT_DIR / f"{index:02d}_{tone.config.slope_db_per_octave:+g}dB.wav")
    print(f"{tone.label}: {len(tone)} samples -> {path}")
