from pathlib import Path
from typing import Union

import librosa
import librosa.display
import matplotlib.pyplot as plt

from .codec import decode
from .service import FingerprintAnalysis


def plot_fingerprint(analysis: FingerprintAnalysis, output_path: Union[str, Path],
                     max_points: int = 2000) -> None:
    """
    Save the dB spectrogram with the robust points overlaid as white dots.

    Only frames that made it into the fingerprint are plotted; at most
    `max_points` of them are drawn for visibility.
    """
    spectrogram = analysis.spectrogram
    sample_rate = spectrogram.sample_rate
    hop_length = spectrogram.step
    freqs = spectrogram.bin_frequencies()

    encoded = decode(analysis.fingerprint)
    stride = max(1, len(encoded) // max_points)
    plot_points = encoded[::stride]
    plot_times_sec = [t * hop_length / sample_rate for (t, fb, amp) in plot_points]
    plot_freqs = [freqs[fb] for (t, fb, amp) in plot_points]

    fig = plt.figure(figsize=(10, 4))
    try:
        if spectrogram.num_frames:
            # specshow expects (bins, frames)
            log_spectrogram = librosa.amplitude_to_db(spectrogram.data.T, ref=1.0, top_db=80.0)
            librosa.display.specshow(log_spectrogram, sr=sample_rate, x_axis="time", y_axis="linear",
                                     hop_length=hop_length, n_fft=spectrogram.frame_size)
            plt.colorbar(format="%+2.0f dB")
        plt.scatter(plot_times_sec, plot_freqs, s=8, c="white", marker="o", alpha=0.8)
        plt.title(f"Robust points ({len(encoded)} encoded)")
        plt.savefig(output_path)
    finally:
        plt.close(fig)
