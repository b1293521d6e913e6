"""Lenient parameter parsing, validation and YAML loading."""

import pytest

from mandelbrot.config import (
    DEFAULT_RUN_CONFIG,
    MAX_ITER_LIMIT,
    ConfigError,
    RunConfig,
    default_run_config,
    load_config_file,
    load_named_sweep_configs,
    load_sweep_configs,
    parse_params,
)


def test_defaults():
    config = RunConfig()
    assert (config.width, config.height) == (100, 75)
    assert config.png is False
    assert (config.ll_x, config.ll_y, config.ur_x, config.ur_y) == (-1.2, 0.20, -1.0, 0.35)
    assert config.max_iter == 255
    assert (config.threads, config.chunk_size, config.schedule) == (9, 1, "dynamic")
    assert config.total_chunks == 75


def test_parse_params_overrides():
    config = parse_params(["width=120", "ll_x=-0.75", "ll_y=0.1", "ur_x=-0.74", "ur_y=0.11", "png=1"])
    assert config.width == 120
    assert config.height == 75
    assert (config.ll_x, config.ll_y, config.ur_x, config.ur_y) == (-0.75, 0.1, -0.74, 0.11)
    assert config.png is True


@pytest.mark.parametrize(
    "arg,message",
    [
        ("bogus", "Ignoring invalid argument 'bogus'"),
        ("colour=red", "Unknown parameter 'colour'"),
        ("width=abc", "Invalid value for 'width'"),
        ("width=0", "Invalid value for 'width'"),
        ("max_iter=-5", "Invalid value for 'max_iter'"),
        ("ll_x=nan", "Invalid value for 'll_x'"),
        ("png=maybe", "Invalid value for 'png'"),
        ("schedule=random", "Invalid value for 'schedule'"),
        ("image_size=big", "Invalid value for 'image_size'"),
        ("max_iter=3000000000", "Invalid value for 'max_iter'"),
        ("max_iter=99999999999999999999", "Invalid value for 'max_iter'"),
    ],
)
def test_invalid_arguments_warn_and_keep_defaults(capsys, arg, message):
    config = parse_params([arg, "height=10"])
    err = capsys.readouterr().err
    assert message in err
    assert err.startswith("Warning:")
    assert config == default_run_config(height=10)


def test_later_arguments_win():
    assert parse_params(["width=10", "width=20"]).width == 20


def test_image_size_key():
    config = parse_params(["image_size=40x30"])
    assert (config.width, config.height) == (40, 30)


def test_cli_args_round_trip():
    config = default_run_config(width=33, png=True, schedule="static", threads=2)
    assert parse_params(config.to_cli_args()) == config


@pytest.mark.parametrize(
    "overrides",
    [
        {"ll_x": -1.0},  # zero width viewport
        {"ur_y": 0.1},  # inverted
        {"width": 0},
        {"height": -3},
        {"max_iter": 0},
        {"max_iter": MAX_ITER_LIMIT + 1},
        {"threads": 0},
        {"schedule": "random"},
    ],
)
def test_validate_rejects(overrides):
    with pytest.raises(ConfigError):
        default_run_config(**overrides).validate()


def test_validate_returns_config():
    assert DEFAULT_RUN_CONFIG.validate() is DEFAULT_RUN_CONFIG


def test_load_config_file(tmp_path, capsys):
    path = tmp_path / "run.yaml"
    path.write_text("width: 40\nmax_iter: 500\npng: true\nschedule: static\nnonsense: 3\n")
    config = load_config_file(path)

    assert (config.width, config.max_iter, config.png, config.schedule) == (40, 500, True, "static")
    assert "Unknown parameter 'nonsense'" in capsys.readouterr().err

    # command-line values override the file
    assert parse_params(["width=7"], config).width == 7
    assert parse_params(["width=7"], config).max_iter == 500


def test_load_config_file_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_config_file(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("width: [1, 2\n")
    with pytest.raises(ConfigError):
        load_config_file(bad)

    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        load_config_file(listing)


def test_flat_sweep_expansion(tmp_path):
    path = tmp_path / "sweep.yaml"
    path.write_text(
        "defaults:\n  max_iter: 50\n"
        "sweep:\n  threads: [1, 2]\n  chunk_size: [1, 4, 8]\n  image_size: ['20x10', '8x8']\n"
    )
    configs = load_sweep_configs(path)

    assert len(configs) == 12
    assert all(c.max_iter == 50 for c in configs)
    assert {(c.width, c.height) for c in configs} == {(20, 10), (8, 8)}
    assert {c.chunk_size for c in configs} == {1, 4, 8}

    [(label, named)] = load_named_sweep_configs(path)
    assert label == "sweep"
    assert named == configs


def test_suite_sweep(tmp_path):
    path = tmp_path / "suites.yaml"
    path.write_text(
        "defaults:\n  width: 10\n"
        "experiments:\n"
        "  - name: small\n    sweep:\n      threads: [1, 2]\n"
        "  - name: big\n    defaults:\n      width: 30\n    sweep:\n      schedule: [static]\n"
    )
    suites = load_named_sweep_configs(path)
    assert [(name, len(configs)) for name, configs in suites] == [("small", 2), ("big", 1)]
    assert suites[1][1][0].width == 30

    [(name, configs)] = load_named_sweep_configs(path, "big")
    assert name == "big"

    with pytest.raises(ConfigError):
        load_named_sweep_configs(path, "absent")


def test_max_iter_limit_fits_result_grid():
    assert MAX_ITER_LIMIT == 2**31 - 1
    config = parse_params([f"max_iter={MAX_ITER_LIMIT}"])
    assert config.max_iter == MAX_ITER_LIMIT
    assert config.validate() is config


def test_boolean_rejected_for_integer_keys(tmp_path, capsys):
    path = tmp_path / "run.yaml"
    path.write_text("width: true\nmax_iter: false\nheight: 5\n")
    config = load_config_file(path)

    err = capsys.readouterr().err
    assert "Invalid value for 'width'" in err
    assert "Invalid value for 'max_iter'" in err
    assert (config.width, config.height, config.max_iter) == (100, 5, 255)


@pytest.mark.parametrize(
    "body",
    [
        "experiments:\n  - just_a_name\n",
        "experiments:\n  - name: ok\n    sweep:\n      threads: [1]\n  - [1, 2]\n",
        "experiments: 5\n",
    ],
)
def test_malformed_experiments_raise_config_error(tmp_path, body):
    path = tmp_path / "suites.yaml"
    path.write_text(body)
    with pytest.raises(ConfigError):
        load_named_sweep_configs(path)
