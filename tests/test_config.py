import pytest
import yaml

from signframes.config import Config


def test_defaults_match_reference_recorder():
    config = Config()
    assert config.recording_duration_ms == 5000
    assert config.target_frames == 50
    assert config.frame_interval_ms == 100
    assert config.countdown_ms == 3000
    assert config.compression_level == 6
    assert (config.image_width, config.image_height) == (640, 480)
    assert config.max_label_length == 50
    config.validate()


def test_from_yaml(tmp_path):
    path = tmp_path / 'signframes.yaml'
    path.write_text(yaml.safe_dump({
        'camera_backend': 'http',
        'snapshot_url': 'http://camera.local/shot.jpg',
        'recording_duration_ms': 2000,
        'target_frames': 20,
        'countdown_ms': 0,
        'compression_level': 9,
        'operator': 'dani',
    }))

    config = Config.from_yaml(str(path))

    assert config.camera_backend == 'http'
    assert config.snapshot_url == 'http://camera.local/shot.jpg'
    assert config.frame_interval_ms == 100
    assert config.countdown_ms == 0
    assert config.compression_level == 9
    assert config.extra == {'operator': 'dani'}


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('')
    assert Config.from_yaml(str(path)) == Config()


def test_non_mapping_yaml_is_rejected(tmp_path):
    path = tmp_path / 'list.yaml'
    path.write_text('- a\n- b\n')
    with pytest.raises(ValueError):
        Config.from_yaml(str(path))


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        Config.from_yaml('/nonexistent/signframes.yaml')


@pytest.mark.parametrize('overrides', [
    {'camera_backend': 'webcam'},
    {'camera_backend': 'http'},
    {'recording_duration_ms': 0},
    {'target_frames': 0},
    {'countdown_ms': -5},
    {'compression_level': 12},
    {'jpeg_quality': 0},
    {'image_width': 0},
    {'max_label_length': 0},
])
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        Config.from_dict(overrides)


def test_ensure_paths(tmp_path):
    config = Config(output_dir=str(tmp_path / 'exports'), log_file=str(tmp_path / 'logs' / 'sf.log'))
    config.ensure_paths()
    config.ensure_paths()
    assert (tmp_path / 'exports').is_dir()
    assert (tmp_path / 'logs').is_dir()
