"""
Configuration settings for the IMU Gesture Engine.

This module centralizes all configurable parameters so the detection
pipeline can be tuned for a particular garment, sensor placement or
performance space without touching the algorithms.
"""
import os

# =============================================================================
# PATHS CONFIGURATION
# =============================================================================
# Base directory of the package
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Recordings (raw sample CSVs and labelled feature logs) live beside the project
DATA_DIR = os.path.join(os.path.dirname(BASE_DIR), 'data')
FEATURE_LOG_PATH = os.path.join(DATA_DIR, 'gesture_features.csv')

# Optional scaler artifact for the scaled feature classifier.
# When absent the built-in constants below are used.
SCALER_ARTIFACT_PATH = os.path.join(DATA_DIR, 'scaler.joblib')

# =============================================================================
# SENSOR CONFIGURATION
# =============================================================================
# Nominal sample rate of the IMU stream (Hz)
SAMPLE_RATE_HZ = 100

# Axis order used everywhere a sample is flattened into an array
AXIS_NAMES = [
    'accel_x', 'accel_y', 'accel_z',
    'gyro_x', 'gyro_y', 'gyro_z',
    'mag_x', 'mag_y', 'mag_z',
]
NUM_AXES = len(AXIS_NAMES)  # 9

# Standard gravity, used by the simulated source (accelerometer is in m/s^2)
GRAVITY = 9.81

# =============================================================================
# BUFFER CONFIGURATION
# =============================================================================
# Live detection buffer (~0.5 s at 100 Hz)
LIVE_BUFFER_CAPACITY = 50

# Scaled feature classifier buffer (~2 s at 100 Hz)
CLASSIFIER_BUFFER_CAPACITY = 200

# Minimum buffered samples before the classifier will produce a result
CLASSIFIER_MIN_SAMPLES = 20

# =============================================================================
# FEATURE EXTRACTION CONFIGURATION
# =============================================================================
# Statistics per axis (mean, variance, energy)
FEATURES_PER_AXIS = 3

# Total features = axes * features_per_axis
TOTAL_FEATURES = NUM_AXES * FEATURES_PER_AXIS  # 27

# =============================================================================
# HEURISTIC DETECTOR WINDOWS (samples)
# =============================================================================
TAP_WINDOW = 5
FLUTTER_WINDOW = 10
STRETCH_WINDOW = 10
WAVE_WINDOW = 15
SPIN_WINDOW = 10
HOLD_WINDOW = 20

# =============================================================================
# HEURISTIC DETECTOR THRESHOLDS
# =============================================================================
# Peak acceleration magnitude (m/s^2) a tap must exceed
TAP_THRESHOLD = 12.0
# A tap peak must be at least this many times its neighbours
TAP_SPIKE_RATIO = 2.0

# Summed |gyro| (deg/s) over the wave window for one axis
WAVE_THRESHOLD = 1500.0
# Only samples above this |gyro| (deg/s) count towards direction reversals
WAVE_REVERSAL_FLOOR = 50.0
WAVE_MIN_REVERSALS = 2

# Mean gyro Z (deg/s) for a sustained spin
SPIN_THRESHOLD = 150.0

# Change in acceleration magnitude (m/s^2) between window ends
STRETCH_THRESHOLD = 4.0
# Stretch must stay linear: mean gyro magnitude (deg/s) ceiling
STRETCH_ROTATION_MAX = 30.0

# Variance of acceleration magnitude for flutter
FLUTTER_VARIANCE_THRESHOLD = 4.0
# Flutter is small and fast: mean magnitude ceiling (m/s^2)
FLUTTER_MEAN_MAX = 14.0

# Summed per-axis variance ceilings for hold
HOLD_ACCEL_VARIANCE_MAX = 0.05
HOLD_GYRO_VARIANCE_MAX = 5.0

# Skip lower-priority detectors on the cycle a possible tap spike arrives,
# so the spike is not reported as flutter or stretch before the tap is confirmed
TAP_ONSET_HOLDOFF = True

# =============================================================================
# ARBITRATION CONFIGURATION
# =============================================================================
# Cycles suppressed after each gesture fires (100 cycles = 1 s at 100 Hz)
GESTURE_COOLDOWNS = {
    'tap': 10,
    'stroke': 25,
    'flutter': 20,
    'stretch': 30,
    'wave': 40,
    'spin': 30,
    'hold': 50,
}

# Detection strategy used by the engine: 'heuristic' or 'classifier'
DEFAULT_DETECTION_MODE = 'heuristic'

# =============================================================================
# CALIBRATION CONFIGURATION
# =============================================================================
# Length of the still-hold period, driven by the caller's scheduler
CALIBRATION_DURATION_S = 2.0

# Fewer accumulated samples than this fails the calibration
CALIBRATION_MIN_SAMPLES = 10

# =============================================================================
# DIRECTIONAL OUTPUT CONFIGURATION
# =============================================================================
# Calibrated magnitude (m/s^2) above which the sensor counts as moving
MOVEMENT_DEADBAND = 0.5

# Floor applied to baseline std before dividing (avoids blow-up on a
# perfectly still calibration)
TILT_MIN_STD = 1e-3

# =============================================================================
# SCALED FEATURE CLASSIFIER CONSTANTS
# =============================================================================
# Per-feature standardisation constants, in FeatureExtractor order
SCALER_MEAN = [
    -0.033299, 0.000967, 4.477509,
    0.504318, 0.002056, 12.659040,
    0.465346, 0.001398, 13.013467,
    -0.652776, 225.487805, 19184.887056,
    -0.691340, 31.560195, 3474.205850,
    -0.799760, 63.719107, 8433.158398,
    0.536194, 0.000502, 104.643063,
    -0.576810, 0.000528, 27.548671,
    0.331796, 0.001821, 47.118122,
]
SCALER_SCALE = [
    0.383633, 0.003931, 5.254801,
    0.406910, 0.012275, 10.436134,
    0.464583, 0.007607, 11.269536,
    20.336724, 1611.847264, 137568.439743,
    9.152525, 157.656866, 16114.560364,
    14.722314, 403.334370, 49687.838173,
    1.788881, 0.002663, 388.911425,
    0.764886, 0.003091, 62.038542,
    1.207764, 0.014189, 152.174922,
]

# The scaler constants were fitted on accelerometer data in g and
# magnetometer data in gauss; samples are converted per axis before
# feature extraction (accel m/s^2 -> g, gyro unchanged, mag uT -> gauss)
CLASSIFIER_UNIT_SCALE = [1.0 / GRAVITY] * 3 + [1.0] * 3 + [0.01] * 3

# Decision rule cut points on the scaled aggregates
CLASSIFIER_TAP_ENERGY = 500.0
CLASSIFIER_TAP_HARD_ENERGY = 1000.0
CLASSIFIER_STROKE_GYRO = 2.0
CLASSIFIER_SOFT_VARIANCE = 1.0

# Fixed confidence attached to each rule outcome
CLASSIFIER_CONFIDENCE = {
    'tap_hard': 0.85,
    'tap_soft': 0.75,
    'stroke': 0.70,
    'soft_variance': 0.60,
    'no_gesture': 0.90,
}

# =============================================================================
# SIMULATED IMU STREAM CONFIGURATION
# =============================================================================
# Interval between simulated samples in milliseconds (100 Hz)
STREAM_INTERVAL_MS = 10

# Noise standard deviations for simulated signals
SIMULATED_ACCEL_NOISE_STD = 0.05
SIMULATED_GYRO_NOISE_STD = 0.5
SIMULATED_MAG_NOISE_STD = 0.2

# Resting magnetic field reading (uT)
SIMULATED_MAG_FIELD = (22.0, -5.0, 42.0)

# Motion patterns the simulator can produce
SIMULATED_PATTERNS = ['rest', 'tap', 'wave', 'spin', 'stretch', 'flutter', 'stroke']

# =============================================================================
# LATENCY MONITORING
# =============================================================================
# One cycle at 100 Hz; processing must finish well inside it
TARGET_LATENCY_MS = 10

# =============================================================================
# GESTURE ROUTING
# =============================================================================
# Outbound address for each gesture, consumed by the transport layer
GESTURE_ADDRESS_MAP = {
    'tap': '/gesture/tap',
    'tap_soft': '/gesture/tap/soft',
    'tap_hard': '/gesture/tap/hard',
    'stroke_up': '/gesture/stroke/up',
    'stroke_down': '/gesture/stroke/down',
    'stroke_left': '/gesture/stroke/left',
    'stroke_right': '/gesture/stroke/right',
    'stretch': '/gesture/stretch',
    'flutter': '/gesture/flutter',
    'wave_horizontal': '/gesture/wave/horizontal',
    'wave_vertical': '/gesture/wave/vertical',
    'spin_left': '/gesture/spin/left',
    'spin_right': '/gesture/spin/right',
    'hold': '/gesture/hold',
}
CONTINUOUS_ADDRESS = '/imu/direction'
RAW_ADDRESS = '/imu/raw'

# =============================================================================
# FLASK SERVER CONFIGURATION
# =============================================================================
FLASK_HOST = '0.0.0.0'
FLASK_PORT = 5000
FLASK_DEBUG = False

# Maximum file upload size (16 MB)
MAX_UPLOAD_SIZE_MB = 16
