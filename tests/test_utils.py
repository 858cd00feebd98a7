"""Tests for configuration and logging utilities."""

import logging
from pathlib import Path

import pytest
import yaml

from orthofit.fitting import EstimatorConfig, load_estimator_config
from orthofit.utils import (
    LoggerMixin,
    get_logger,
    get_nested,
    load_config,
    log_function_call,
    merge_configs,
    setup_logger,
)


DEFAULT_CONFIG = Path(__file__).parent.parent / "configs" / "default.yaml"


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "estimator.yaml"
    path.write_text(yaml.safe_dump({
        "estimator": {"initial_frustum_scale": 75.0},
        "optimizer": {"max_iterations": 40, "epsilon": 1.0e-3},
    }))
    return path


# =============================================================================
# Test Config Loading
# =============================================================================

class TestLoadConfig:
    """Tests for YAML configuration loading."""

    def test_load(self, config_file):
        config = load_config(config_file)

        assert config["estimator"]["initial_frustum_scale"] == 75.0
        assert config["optimizer"]["max_iterations"] == 40

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_relative_to_config_dir(self, config_file):
        config = load_config("estimator.yaml", config_dir=config_file.parent)

        assert config["optimizer"]["epsilon"] == 1e-3

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError):
            load_config(path)

    def test_loads_are_independent(self, config_file):
        first = load_config(config_file)
        first["optimizer"]["max_iterations"] = 1

        second = load_config(config_file)

        assert second["optimizer"]["max_iterations"] == 40

    def test_reads_file_changes(self, config_file):
        load_config(config_file)
        config_file.write_text(yaml.safe_dump({"estimator": {}}))

        assert load_config(config_file) == {"estimator": {}}

    def test_merge(self):
        base = {"optimizer": {"max_iterations": 200, "ftol": 1e-10}, "estimator": {}}
        override = {"optimizer": {"max_iterations": 5}}

        merged = merge_configs(base, override)

        assert merged["optimizer"] == {"max_iterations": 5, "ftol": 1e-10}
        assert base["optimizer"]["max_iterations"] == 200

    def test_merge_result_shares_nothing(self):
        base = {"estimator": {"initial_frustum_scale": 110.0}}
        override = {"optimizer": {"max_iterations": 5}}

        merged = merge_configs(base, override)
        merged["estimator"]["initial_frustum_scale"] = 1.0
        merged["optimizer"]["max_iterations"] = 1

        assert base["estimator"]["initial_frustum_scale"] == 110.0
        assert override["optimizer"]["max_iterations"] == 5

    def test_load_config_with_overrides(self, config_file):
        config = load_config(config_file, overrides={"optimizer": {"max_iterations": 3}})

        assert config["optimizer"]["max_iterations"] == 3
        assert config["optimizer"]["epsilon"] == 1e-3

    def test_get_nested(self):
        config = {"optimizer": {"max_iterations": 10}}

        assert get_nested(config, "optimizer.max_iterations") == 10
        assert get_nested(config, "optimizer.gtol", 1e-10) == 1e-10
        assert get_nested(config, "logging.level") is None
        assert get_nested(config, "optimizer.max_iterations.value", "x") == "x"


class TestEstimatorConfigFiles:
    """Estimator settings read from YAML."""

    def test_load_estimator_config(self, config_file):
        config = load_estimator_config(config_file)

        assert config.initial_frustum_scale == 75.0
        assert config.optimizer.max_iterations == 40
        assert config.optimizer.epsilon == 1e-3

    def test_overrides(self, config_file):
        config = load_estimator_config(
            config_file, overrides={"optimizer": {"difference_mode": "central"}}
        )

        assert config.optimizer.difference_mode == "central"
        assert config.optimizer.max_iterations == 40

    def test_shipped_defaults_match_code(self):
        assert load_estimator_config(DEFAULT_CONFIG) == EstimatorConfig()

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"optimizer": {"damping_up": 0.5}}))

        with pytest.raises(ValueError):
            load_estimator_config(path)

    def test_exponent_without_decimal_point(self, tmp_path):
        """PyYAML reads 1e-4 and 1e+12 as strings."""
        path = tmp_path / "exponents.yaml"
        path.write_text("optimizer:\n  epsilon: 1e-4\n  max_damping: 1e+12\n  max_iterations: 50\n")

        config = load_estimator_config(path)

        assert config.optimizer.epsilon == 1e-4
        assert config.optimizer.max_damping == 1e12
        assert config.optimizer.max_iterations == 50

    @pytest.mark.parametrize("text", [
        "optimizer:\n  epsilon: tiny\n",
        "optimizer:\n  max_iterations: 2.5\n",
        "optimizer:\n  gtol: [1, 2]\n",
    ])
    def test_unconvertible_value(self, tmp_path, text):
        path = tmp_path / "bad.yaml"
        path.write_text(text)

        with pytest.raises(ValueError):
            load_estimator_config(path)


# =============================================================================
# Test Logging
# =============================================================================

class TestLogging:
    """Tests for logger helpers."""

    def test_get_logger_is_namespaced(self):
        assert get_logger("Solver").name == "orthofit.Solver"
        assert get_logger("orthofit.optim").name == "orthofit.optim"
        assert get_logger().name == "orthofit"

    def test_setup_logger_file(self, tmp_path):
        log_file = tmp_path / "logs" / "fit.log"
        logger = setup_logger("orthofit.test_file", level="DEBUG", log_file=str(log_file), console=False)

        logger.debug("hello")
        for handler in logger.handlers:
            handler.flush()

        assert "hello" in log_file.read_text()
        assert logger.level == logging.DEBUG

    def test_setup_logger_replaces_handlers(self):
        setup_logger("orthofit.test_repeat", level="INFO")
        logger = setup_logger("orthofit.test_repeat", level=logging.WARNING)

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_setup_logger_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logger("orthofit.test_level", level="LOUD")

    def test_logger_mixin(self):
        class Solver(LoggerMixin):
            pass

        assert Solver().logger.name == "orthofit.Solver"

    def test_log_function_call_reraises(self, caplog):
        @log_function_call()
        def fails():
            raise AssertionError("precondition")

        with caplog.at_level(logging.ERROR, logger="orthofit"):
            with pytest.raises(AssertionError):
                fails()

        assert "fails failed" in caplog.text

    def test_log_function_call_keeps_name(self):
        @log_function_call()
        def documented():
            """Docstring."""
            return 1

        assert documented.__name__ == "documented"
        assert documented() == 1

    def test_log_function_call_reports_duration(self, caplog):
        @log_function_call()
        def quick():
            return 2

        with caplog.at_level(logging.DEBUG, logger="orthofit"):
            assert quick() == 2

        assert "quick finished in" in caplog.text
