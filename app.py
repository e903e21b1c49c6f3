"""
IMU Gesture Engine - Flask Backend

This is the main Flask application providing REST API endpoints for:
- Single-sample and batch processing through the gesture engine
- CSV upload and offline gesture detection
- Simulated live IMU streaming (SSE)
- Session calibration (timed still-hold)
- Labelled feature recording
- Thresholds, detection mode and latency metrics

All endpoints return JSON responses.
Target cycle latency: < 10ms (one sample period at 100 Hz)
"""
import json
import logging
import os
import threading
import time
from typing import Optional

from flask import Flask, Response, jsonify, request

from imu_gestures.config import (
    CALIBRATION_DURATION_S,
    DATA_DIR,
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    MAX_UPLOAD_SIZE_MB,
    NUM_AXES,
    SCALER_ARTIFACT_PATH,
    STREAM_INTERVAL_MS,
    TARGET_LATENCY_MS,
)
from imu_gestures.errors import InsufficientData
from imu_gestures.gestures import GestureType
from imu_gestures.imu_sources import CSVSource, SimulatedSource
from imu_gestures.ml import FeatureLogger, GestureEngine, record_window
from imu_gestures.monitoring import get_latency_tracker
from imu_gestures.routing import GestureRouter
from imu_gestures.signal_processing import Sample

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_SIZE_MB * 1024 * 1024

# Global state
engine = GestureEngine()
simulated_source = SimulatedSource()
gesture_router = GestureRouter()
feature_logger = FeatureLogger()
latency_tracker = get_latency_tracker()

# The engine is single-threaded; every request touching it holds this lock
_engine_lock = threading.Lock()

# Streaming state
_stream_active = False
_stream_lock = threading.Lock()

# Wall-clock start of the calibration hold, None when not calibrating
_calibration_started_at: Optional[float] = None


# =============================================================================
# INITIALIZATION
# =============================================================================

def initialize_app():
    """
    Initialize the application on startup.

    This function:
    1. Ensures the data directory exists
    2. Loads scaler constants from an artifact if one is present
    """
    print("\n" + "="*60)
    print("IMU GESTURE ENGINE - INITIALIZATION")
    print("="*60 + "\n")

    os.makedirs(DATA_DIR, exist_ok=True)

    if engine.classifier.load_scaler(SCALER_ARTIFACT_PATH):
        print("[OK] Scaler constants loaded from artifact")
    else:
        print("[OK] Using built-in scaler constants")

    print(f"[OK] Detection mode: {engine.mode.value}")

    print("\n" + "="*60)
    print("SYSTEM READY")
    print("="*60 + "\n")


# =============================================================================
# HELPERS
# =============================================================================

def _parse_sample(values) -> Sample:
    if not isinstance(values, (list, tuple)) or len(values) != NUM_AXES:
        raise ValueError(f'Expected {NUM_AXES} IMU values')
    return Sample.from_sequence(values)


def _check_calibration_timer() -> None:
    """Finish a running calibration once the hold duration has elapsed."""
    global _calibration_started_at

    if _calibration_started_at is None or not engine.is_calibrating():
        return
    if time.time() - _calibration_started_at >= CALIBRATION_DURATION_S:
        _calibration_started_at = None
        engine.stop_calibration()


def _run_cycle(sample: Sample) -> dict:
    """One engine cycle plus routing and latency bookkeeping. Caller holds the engine lock."""
    _check_calibration_timer()
    frame = engine.process_frame(sample)
    latency = latency_tracker.record_timings(engine.last_latency)
    messages = gesture_router.route_frame(frame)

    result = frame.to_dict()
    result['latency'] = latency
    result['addresses'] = [address for address, _ in messages]
    return result


# =============================================================================
# ROUTES - SAMPLE PROCESSING
# =============================================================================

@app.route('/api/process', methods=['POST'])
def process():
    """
    Run samples through the live engine.

    Expected JSON: {"sample": [9 values]} or {"samples": [[9 values], ...]}
    Returns: One frame (event, direction, raw, latency) per sample.
    """
    data = request.get_json(silent=True)
    if not data or ('sample' not in data and 'samples' not in data):
        return jsonify({'error': 'sample or samples required'}), 400

    try:
        raw = data['samples'] if 'samples' in data else [data['sample']]
        samples = [_parse_sample(values) for values in raw]
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400

    try:
        with _engine_lock:
            frames = [_run_cycle(sample) for sample in samples]
        if 'sample' in data and 'samples' not in data:
            return jsonify(frames[0])
        return jsonify({'success': True, 'frames': frames})

    except Exception as e:
        logger.exception("Processing failed")
        return jsonify({'error': str(e)}), 500


# =============================================================================
# ROUTES - CSV UPLOAD AND BATCH DETECTION
# =============================================================================

@app.route('/api/upload', methods=['POST'])
def upload_csv():
    """
    Upload a recorded session and run gesture detection over it.

    Expected: CSV file with 9 IMU columns.
    The recording runs through a fresh engine using the live thresholds
    and mode, so the live session is not disturbed.
    Returns: Every detected gesture with its sample index.
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if not file.filename.endswith('.csv'):
        return jsonify({'error': 'File must be a CSV'}), 400

    csv_source = CSVSource()
    if not csv_source.load_from_file(file.read()):
        return jsonify({'error': 'Failed to parse CSV file'}), 400

    samples = csv_source.get_all_samples()
    if not samples:
        return jsonify({'error': 'No data in CSV file'}), 400

    try:
        with _engine_lock:
            batch_engine = GestureEngine(thresholds=engine.thresholds, mode=engine.mode.value)
            batch_engine.classifier.scaler_mean = engine.classifier.scaler_mean.copy()
            batch_engine.classifier.scaler_scale = engine.classifier.scaler_scale.copy()

        events = []
        gesture_counts = {}
        for index, sample in enumerate(samples):
            event = batch_engine.process(sample)
            if event.is_gesture:
                events.append({'index': index, **event.to_dict()})
                g = event.gesture.value
                gesture_counts[g] = gesture_counts.get(g, 0) + 1

        return jsonify({
            'success': True,
            'sample_count': len(samples),
            'events': events,
            'summary': {
                'gesture_counts': gesture_counts,
            }
        })

    except Exception as e:
        logger.exception("Batch detection failed")
        return jsonify({'error': str(e)}), 500


# =============================================================================
# ROUTES - SIMULATED IMU STREAM
# =============================================================================

@app.route('/api/stream/start', methods=['POST'])
def start_stream():
    """Start the simulated IMU stream."""
    global _stream_active

    with _stream_lock:
        if _stream_active:
            return jsonify({'message': 'Stream already active'}), 200

        simulated_source.start_stream()
        _stream_active = True

    return jsonify({
        'success': True,
        'message': 'Stream started',
        'interval_ms': STREAM_INTERVAL_MS,
        'pattern': simulated_source.current_pattern
    })


@app.route('/api/stream/stop', methods=['POST'])
def stop_stream():
    """Stop the simulated IMU stream."""
    global _stream_active

    with _stream_lock:
        simulated_source.stop_stream()
        _stream_active = False

    return jsonify({
        'success': True,
        'message': 'Stream stopped'
    })


@app.route('/api/stream/pattern', methods=['POST'])
def set_stream_pattern():
    """
    Set the motion pattern to simulate.

    Expected JSON: {"pattern": "rest|tap|wave|spin|stretch|flutter|stroke"}
    """
    data = request.get_json(silent=True) or {}
    pattern = data.get('pattern', 'rest')

    if simulated_source.set_pattern(pattern):
        return jsonify({
            'success': True,
            'pattern': simulated_source.current_pattern
        })
    return jsonify({
        'error': 'Invalid pattern',
        'available': simulated_source.available_patterns()
    }), 400


@app.route('/api/stream/data')
def stream_data():
    """
    Server-Sent Events endpoint for live IMU frames.

    Each event carries the gesture event, directional reading, raw sample
    and cycle latency.
    """
    def generate():
        while _stream_active:
            try:
                sample = simulated_source.get_sample()

                if sample is not None:
                    with _engine_lock:
                        result = _run_cycle(sample)
                    result['pattern'] = simulated_source.current_pattern
                    yield f"data: {json.dumps(result)}\n\n"

                time.sleep(STREAM_INTERVAL_MS / 1000.0)

            except Exception as e:
                logger.exception("Stream cycle failed")
                yield f"data: {json.dumps({'error': str(e)})}\n\n"
                break

        yield f"data: {json.dumps({'status': 'stream_ended'})}\n\n"

    return Response(
        generate(),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'Connection': 'keep-alive',
            'X-Accel-Buffering': 'no'
        }
    )


# =============================================================================
# ROUTES - CALIBRATION
# =============================================================================

@app.route('/api/calibrate/start', methods=['POST'])
def start_calibration():
    """Start a calibration hold. Samples processed from now on build the baseline."""
    global _calibration_started_at

    with _engine_lock:
        engine.start_calibration()
        _calibration_started_at = time.time()

    return jsonify({
        'success': True,
        'message': 'Calibration started. Hold the sensor still.',
        'duration_s': CALIBRATION_DURATION_S
    })


@app.route('/api/calibrate/stop', methods=['POST'])
def stop_calibration():
    """Finish calibration now, without waiting for the hold timer."""
    global _calibration_started_at

    with _engine_lock:
        _calibration_started_at = None
        success = engine.stop_calibration()
        progress = engine.get_calibration_progress()

    if not success:
        return jsonify({'success': False, 'error': progress['last_error'], 'progress': progress}), 400
    return jsonify({'success': True, 'progress': progress})


@app.route('/api/calibrate/reset', methods=['POST'])
def reset_calibration():
    global _calibration_started_at

    with _engine_lock:
        _calibration_started_at = None
        engine.reset_calibration()
    return jsonify({'success': True})


@app.route('/api/calibrate/status', methods=['GET'])
def calibration_status():
    """Get current calibration status."""
    with _engine_lock:
        _check_calibration_timer()
        return jsonify(engine.get_calibration_progress())


@app.route('/api/calibrate/baseline', methods=['GET'])
def calibration_baseline():
    """Get the computed baseline if calibrated."""
    with _engine_lock:
        baseline = engine.get_calibration()
    if baseline:
        return jsonify(baseline.to_dict())
    else:
        return jsonify({'error': 'Not calibrated'}), 400


# =============================================================================
# ROUTES - FEATURE RECORDING
# =============================================================================

@app.route('/api/record', methods=['POST'])
def record_features():
    """
    Record a labelled feature vector from the most recent samples.

    Expected JSON: {"label": "tap_soft"}
    """
    data = request.get_json(silent=True) or {}
    label = data.get('label')
    if not label:
        return jsonify({'error': 'label required'}), 400

    try:
        with _engine_lock:
            samples = engine.classifier.buffer.window(engine.classifier.buffer.size())
        vector = record_window(samples, label)
        feature_logger.log(vector)
    except InsufficientData:
        return jsonify({'error': 'No samples buffered yet'}), 400
    except OSError as e:
        logger.error("Could not write feature log: %s", e)
        return jsonify({'error': str(e)}), 500

    return jsonify({
        'success': True,
        'label': label,
        'samples_used': len(samples),
        'rows_written': feature_logger.rows_written
    })


@app.route('/api/record', methods=['GET'])
def recording_summary():
    """Get label counts of the feature log."""
    return jsonify({
        'path': feature_logger.filepath,
        'label_counts': feature_logger.label_counts()
    })


# =============================================================================
# ROUTES - CONFIGURATION
# =============================================================================

@app.route('/api/thresholds', methods=['GET'])
def get_thresholds():
    return jsonify(engine.thresholds.to_dict())


@app.route('/api/thresholds', methods=['POST'])
def update_thresholds():
    """
    Override detector thresholds.

    Expected JSON: {"tap_threshold": 14.0, "cooldowns": {"wave": 60}, ...}.
    Unknown names and non-numeric values are rejected; cooldowns are merged
    onto the current ones.
    """
    overrides = request.get_json(silent=True)
    if not isinstance(overrides, dict) or not overrides:
        return jsonify({'error': 'JSON object of threshold overrides required'}), 400

    try:
        with _engine_lock:
            engine.set_thresholds(engine.thresholds.with_overrides(**overrides))
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(engine.thresholds.to_dict())


@app.route('/api/mode', methods=['POST'])
def set_mode():
    """
    Switch the detection strategy.

    Expected JSON: {"mode": "heuristic|classifier"}
    """
    data = request.get_json(silent=True) or {}
    try:
        with _engine_lock:
            engine.set_mode(data.get('mode', ''))
    except ValueError:
        return jsonify({'error': 'mode must be heuristic or classifier'}), 400
    return jsonify({'success': True, 'mode': engine.mode.value})


@app.route('/api/reset', methods=['POST'])
def reset_engine():
    """Clear buffers and cooldown; calibration is kept."""
    with _engine_lock:
        engine.reset()
    return jsonify({'success': True})


@app.route('/api/routing', methods=['GET'])
def get_routing():
    """Get the gesture-to-address mapping."""
    return jsonify(gesture_router.get_state())


@app.route('/api/gestures', methods=['GET'])
def get_gestures():
    return jsonify([
        {'gesture': g.value, 'name': g.display_name, 'family': g.family}
        for g in GestureType if g is not GestureType.NO_GESTURE
    ])


# =============================================================================
# ROUTES - METRICS AND STATUS
# =============================================================================

@app.route('/api/metrics', methods=['GET'])
def get_metrics():
    """Get latency and performance metrics."""
    return jsonify({
        'latency': latency_tracker.get_current_stats(),
        'breakdown': latency_tracker.get_breakdown_stats(),
        'latest': latency_tracker.get_latest()
    })


@app.route('/api/status', methods=['GET'])
def get_status():
    """Get overall system status."""
    with _engine_lock:
        status = engine.get_status()

    status.update({
        'stream_active': _stream_active,
        'source': simulated_source.get_source_info(),
        'latency_target_ms': TARGET_LATENCY_MS,
        'within_latency_target': latency_tracker.is_within_target()
    })
    return jsonify(status)


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG if FLASK_DEBUG else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Initialize on startup
    initialize_app()

    # Run Flask server
    print(f"\n[*] Starting server at http://{FLASK_HOST}:{FLASK_PORT}")
    app.run(
        host=FLASK_HOST,
        port=FLASK_PORT,
        debug=FLASK_DEBUG,
        threaded=True
    )
