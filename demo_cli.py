#!/usr/bin/env python3
"""
demo_cli.py - Standalone command-line demo
============================================
Runs a full measurement through `MeasurementController` WITHOUT the FastAPI
server.  Useful for quick testing, demos, and debugging.

Usage:
    python demo_cli.py                                   # synthetic 72 BPM finger stream
    python demo_cli.py --bpm 95 --jitter 0.08 --seed 3   # another synthetic subject
    python demo_cli.py --source camera --mode face --show-feed

Exit codes: 0 measurement stored, 1 camera failure, 2 retry requested.

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool - NOT a medical device.
"""

import argparse
import sys

import cv2
from pydantic import ValidationError

from camera.capture import CameraCapture
from config import DISCLAIMER
from measurement.controller import MeasurementCallbacks, MeasurementController
from measurement.history import Measurement
from measurement.session import Phase
from measurement.settings import MeasurementConfig
from rppg.sampling import CaptureMode
from rppg.synthetic import interleave, synthetic_breathing, synthetic_ppg
from utils.errors import AcquisitionFailure
from utils.logger import get_logger, set_level

logger = get_logger("demo_cli")

EXIT_OK, EXIT_ACQUISITION, EXIT_RETRY = 0, 1, 2


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{value}\033[0m {unit}")


def _progress_bar(percent: float) -> None:
    filled = int(percent / 5)
    sys.stdout.write(f"\r  [{'#' * filled}{'.' * (20 - filled)}] {percent:5.1f}%")
    sys.stdout.flush()


def print_measurement(m: Measurement) -> None:
    print("\n" + "=" * 60)
    print("  RESULTS")
    print("=" * 60)

    print("\n  ── Heart Rate ──")
    pretty_print("Heart Rate", m.heart_rate_bpm, "BPM")
    pretty_print("Confidence", m.confidence_percent, "%")
    pretty_print("Signal quality", m.signal_quality)
    pretty_print("SNR", m.snr_db, "dB")

    print("\n  ── Heart Rate Variability ──")
    if m.hrv:
        pretty_print("SDNN", m.hrv.sdnn, "ms")
        pretty_print("RMSSD", m.hrv.rmssd, "ms")
        pretty_print("pNN50", m.hrv.pnn50, "%")
        pretty_print("Mean RR", m.hrv.mean_rr_ms, "ms")
    else:
        print("    ⚠️  Insufficient beats for HRV calculation.")

    print("\n  ── Other (ESTIMATED) ──")
    if m.spo2_percent is not None:
        pretty_print("SpO2", m.spo2_percent, "%")
    if m.respiration_rate_bpm is not None:
        pretty_print("Respiration", m.respiration_rate_bpm, f"breaths/min ({m.breathing_pattern})")
    if m.heart_score is not None:
        pretty_print("Heart score", m.heart_score, "/ 100")
    if m.stress_level is not None:
        pretty_print("Stress level", m.stress_level)
    if m.health_zone is not None:
        pretty_print("Training zone", m.health_zone)
    if m.quality_flags:
        pretty_print("Quality flags", ", ".join(sorted(m.quality_flags)))


def run_synthetic(controller: MeasurementController, args) -> None:
    mode = CaptureMode(args.mode)
    duration_s = args.duration
    streams = []
    if mode is not CaptureMode.SOUND:
        streams.append(synthetic_ppg(
            bpm=args.bpm, duration_s=duration_s, jitter=args.jitter,
            channel=mode.channel, seed=args.seed, noise=args.noise,
        ))
    streams.append(synthetic_breathing(breaths_per_min=args.breaths, duration_s=duration_s, seed=args.seed + 1))

    controller.start(mode, now_ms=0.0)
    for sample in interleave(*streams):
        controller.process_sample(sample)
        if controller.phase not in (Phase.CALIBRATING, Phase.MEASURING):
            break


def run_camera(controller: MeasurementController, args) -> None:
    mode = CaptureMode(args.mode)
    with CameraCapture() as camera:
        first = camera.next_frame(timeout=3.0)
        controller.start(mode, now_ms=first.timestamp_ms)
        last_index = 0
        while controller.phase in (Phase.CALIBRATING, Phase.MEASURING):
            frame = camera.next_frame(after_index=last_index, timeout=3.0)
            last_index = frame.index
            controller.process_frame(frame.image, frame.timestamp_ms, bgr=True)

            # ── Optional live feed with overlay ──────────────────────────
            if args.show_feed:
                display = frame.image.copy()
                h, w = display.shape[:2]
                side = min(100, w // 4) if mode is CaptureMode.FINGER else min(w, h) // 2
                top, left = (h - side) // 2, (w - side) // 2
                cv2.rectangle(display, (left, top), (left + side, top + side), (0, 255, 0), 2)
                session = controller.session
                pct = int(session.progress) if session else 100
                cv2.putText(display, f"{controller.phase.value} {pct}%", (20, 35),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1)
                cv2.imshow("PPG Demo", display)
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    print("\n  Measurement cancelled by user.")
                    controller.stop()
    if args.show_feed:
        cv2.destroyAllWindows()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PPG vital-signs CLI demo")
    parser.add_argument("--source", choices=["synthetic", "camera"], default="synthetic")
    parser.add_argument("--mode", choices=[m.value for m in CaptureMode], default=CaptureMode.FINGER.value)
    parser.add_argument("--bpm", type=float, default=72.0, help="Synthetic heart rate")
    parser.add_argument("--jitter", type=float, default=0.03, help="Synthetic beat-to-beat jitter (fraction)")
    parser.add_argument("--noise", type=float, default=0.0, help="Synthetic additive noise (intensity units)")
    parser.add_argument("--breaths", type=float, default=15.0, help="Synthetic breathing rate")
    parser.add_argument("--duration", type=float, default=15.0, help="Measurement duration (seconds)")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the synthetic streams")
    parser.add_argument("--show-feed", action="store_true", help="Show live camera feed with region overlay")
    parser.add_argument("--verbose", action="store_true", help="Log per-frame detail")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_level("DEBUG")
    if args.source == "camera" and args.mode == CaptureMode.SOUND.value:
        parser.error("sound mode needs a microphone; use --source synthetic.")
    if not 0.0 <= args.jitter < 1.0:
        parser.error("--jitter must be in [0, 1).")

    try:
        config = MeasurementConfig(measurement_duration_ms=int(args.duration * 1000))
    except ValidationError as e:
        parser.error(f"invalid --duration: {e.errors()[0]['msg']}")

    print("\n" + "=" * 60)
    print("  PPG VITAL SIGNS - CLI DEMO")
    print("=" * 60)
    print(f"  Source : {args.source}    Mode : {args.mode}    Duration : {args.duration:g} s")
    print("=" * 60 + "\n")

    outcome: dict = {}
    callbacks = MeasurementCallbacks(
        on_progress=_progress_bar,
        on_complete=lambda m: outcome.setdefault("measurement", m),
        on_retry=lambda msg: outcome.setdefault("retry", msg),
        on_error=lambda msg: outcome.setdefault("error", msg),
    )
    controller = MeasurementController(config, callbacks)

    try:
        if args.source == "synthetic":
            run_synthetic(controller, args)
        else:
            run_camera(controller, args)
    except AcquisitionFailure as e:
        controller.report_acquisition_failure(str(e))
    print()

    if "error" in outcome:
        print(f"\n  ERROR: {outcome['error']}")
        return EXIT_ACQUISITION
    if "measurement" not in outcome:
        print(f"\n  ⚠️  {outcome.get('retry', 'Measurement did not complete.')}")
        return EXIT_RETRY

    print_measurement(outcome["measurement"])
    print("\n" + "=" * 60)
    print(f"  {DISCLAIMER}")
    print("=" * 60 + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
