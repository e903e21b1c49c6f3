from imu_gestures.config import CONTINUOUS_ADDRESS, RAW_ADDRESS
from imu_gestures.gestures import GestureEvent, GestureType
from imu_gestures.ml.directional import DirectionalReading
from imu_gestures.ml.engine import EngineFrame
from imu_gestures.routing import GestureRouter
from imu_gestures.signal_processing import Sample


def test_default_addresses():
    router = GestureRouter()
    assert router.get_address(GestureType.TAP) == '/gesture/tap'
    assert router.get_address(GestureType.SPIN_RIGHT) == '/gesture/spin/right'
    assert router.get_address(GestureType.NO_GESTURE) is None


def test_route_notifies_listeners():
    router = GestureRouter()
    received = []
    router.add_listener(lambda event, address: received.append((event.gesture, address)))

    assert router.route(GestureEvent(GestureType.HOLD)) == '/gesture/hold'
    assert router.route(GestureEvent.none()) is None

    assert received == [(GestureType.HOLD, '/gesture/hold')]
    assert router.routed_count == 1
    assert router.get_state()['last_gesture'] == 'hold'


def test_failing_listener_does_not_stop_others():
    router = GestureRouter()
    received = []

    def broken(event, address):
        raise RuntimeError("transport down")

    router.add_listener(broken)
    router.add_listener(lambda event, address: received.append(address))

    router.route(GestureEvent(GestureType.FLUTTER))
    assert received == ['/gesture/flutter']

    router.remove_listener(broken)
    router.remove_listener(broken)


def test_custom_mapping():
    router = GestureRouter({'tap': '/fx/trigger'})
    assert router.route(GestureEvent(GestureType.TAP)) == '/fx/trigger'
    assert router.route(GestureEvent(GestureType.WAVE_VERTICAL)) is None

    router.set_mapping(GestureType.WAVE_VERTICAL, '/fx/sweep')
    assert router.get_address(GestureType.WAVE_VERTICAL) == '/fx/sweep'

    router.reset_to_defaults()
    assert router.get_address(GestureType.TAP) == '/gesture/tap'


def test_route_frame_messages():
    router = GestureRouter()
    sample = Sample(accel_z=9.81)
    frame = EngineFrame(GestureEvent(GestureType.TAP, intensity=30.0),
                        DirectionalReading.neutral(), sample)

    messages = router.route_frame(frame)
    assert [address for address, _ in messages] == ['/gesture/tap', CONTINUOUS_ADDRESS, RAW_ADDRESS]
    assert messages[0][1]['intensity'] == 30.0
    assert messages[2][1]['accel_z'] == 9.81


def test_route_frame_without_gesture():
    frame = EngineFrame(GestureEvent.none(), DirectionalReading.neutral(), Sample())
    messages = GestureRouter().route_frame(frame)
    assert [address for address, _ in messages] == [CONTINUOUS_ADDRESS, RAW_ADDRESS]
    assert messages[0][1]['calibrated'] is False
