"""Prometheus metrics for step counting"""
from prometheus_client import Counter, Gauge, Histogram

# Counters
readings_processed = Counter(
    'pedometer_readings_processed_total',
    'Total sensor readings handed to the step source',
    ['source'],
)

samples_rejected = Counter(
    'pedometer_samples_rejected_total',
    'Accelerometer samples ignored by the preprocessor',
    ['reason'],
)

peaks_detected = Counter(
    'pedometer_peaks_detected_total',
    'Peak candidates found in the smoothed magnitude signal'
)

steps_detected = Counter(
    'pedometer_steps_detected_total',
    'Steps added to the daily count',
    ['source'],
)

processing_errors = Counter(
    'pedometer_processing_errors_total',
    'Total message processing errors'
)

persistence_errors = Counter(
    'pedometer_persistence_errors_total',
    'State or history writes that failed'
)

observer_errors = Counter(
    'pedometer_observer_errors_total',
    'Step count observers that raised'
)

# Histograms
processing_duration = Histogram(
    'pedometer_processing_duration_seconds',
    'Time spent processing one sensor message'
)

# Gauges
todays_steps = Gauge(
    'pedometer_todays_steps',
    'Steps counted for the current day'
)
