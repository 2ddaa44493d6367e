"""
Configuration and logging setup tests.

Covers environment selection, configuration validation and the structlog/stdlib
logging setup driven by the configuration classes.
"""

import pytest

from src.config.settings import (
    DEFAULT_ERROR_TEMPLATE,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    validate_configuration,
)
from src.monitoring.logging import (
    LoggingConfig,
    build_logging_dict_config,
    create_application_context_processor,
    get_logger,
    setup_structured_logging,
)


class TestGetConfig:
    """Environment name to configuration class."""

    @pytest.mark.parametrize('environment,config_class', [
        ('development', DevelopmentConfig),
        ('testing', TestingConfig),
        ('production', ProductionConfig),
        ('PRODUCTION', ProductionConfig),
    ])
    def test_known_environments(self, environment, config_class):
        assert get_config(environment) is config_class

    def test_app_env_is_used_by_default(self, monkeypatch):
        monkeypatch.setenv('APP_ENV', 'testing')

        assert get_config() is TestingConfig

    def test_development_is_the_default(self, monkeypatch):
        monkeypatch.delenv('APP_ENV', raising=False)

        assert get_config() is DevelopmentConfig

    def test_unknown_environment(self):
        with pytest.raises(ValueError, match="Unsupported environment 'staging'"):
            get_config('staging')

    def test_testing_config_never_writes_files(self):
        assert TestingConfig.TESTING is True
        assert TestingConfig.LOG_FILE_PATH is None
        assert TestingConfig.LOG_FORMAT == 'console'


class TestValidateConfiguration:
    """Configuration consistency checks."""

    def test_shipped_configurations_are_valid(self):
        assert validate_configuration(TestingConfig) == []

    def test_default_error_template(self):
        message = DEFAULT_ERROR_TEMPLATE.format(
            source_field='docType', source_value='PAN', derived_field='fields'
        )

        assert message == 'docType:PAN has invalid value in fields'

    def test_invalid_level_and_format(self):
        class BrokenConfig(TestingConfig):
            LOG_LEVEL = 'VERBOSE'
            LOG_FORMAT = 'xml'

        issues = validate_configuration(BrokenConfig)

        assert len(issues) == 2
        assert issues[0].startswith('LOG_LEVEL')
        assert issues[1].startswith('LOG_FORMAT')

    @pytest.mark.parametrize('template', [
        "{field} is invalid",
        "{0} is invalid",
        "{source_field",
        "{source_field.missing} is invalid",
    ])
    def test_invalid_error_template(self, template):
        class BrokenConfig(TestingConfig):
            DERIVED_FIELD_ERROR_TEMPLATE = template

        issues = validate_configuration(BrokenConfig)

        assert issues == [
            "DERIVED_FIELD_ERROR_TEMPLATE may only use the {source_field}, "
            "{source_value} and {derived_field} placeholders"
        ]


class TestStructuredLogging:
    """Logging setup from configuration classes."""

    def test_logging_config_reads_settings(self):
        logging_config = LoggingConfig(TestingConfig)

        assert logging_config.log_level == 'DEBUG'
        assert logging_config.log_format == 'console'
        assert logging_config.log_file_path is None
        assert logging_config.environment == 'testing'

    def test_application_context_processor(self):
        processor = create_application_context_processor(LoggingConfig(TestingConfig))

        event_dict = processor(None, 'info', {'event': 'Rule table built'})

        assert event_dict['application'] == TestingConfig.APP_NAME
        assert event_dict['environment'] == 'testing'

    def test_dict_config_console_only(self):
        dict_config = build_logging_dict_config(LoggingConfig(TestingConfig))

        assert set(dict_config['handlers']) == {'console'}
        assert dict_config['loggers']['']['level'] == 'DEBUG'

    def test_dict_config_with_rotating_file(self, tmp_path):
        class FileConfig(TestingConfig):
            LOG_FILE_PATH = str(tmp_path / 'validation.log')

        dict_config = build_logging_dict_config(LoggingConfig(FileConfig))

        file_handler = dict_config['handlers']['file']
        assert file_handler['class'] == 'logging.handlers.RotatingFileHandler'
        assert file_handler['filename'] == FileConfig.LOG_FILE_PATH
        assert dict_config['loggers']['']['handlers'] == ['console', 'file']

    def test_setup_configures_structlog(self, mocker):
        configure = mocker.patch('src.monitoring.logging.structlog.configure')
        dict_config = mocker.patch('src.monitoring.logging.logging.config.dictConfig')

        setup_structured_logging(TestingConfig)

        configure.assert_called_once()
        assert configure.call_args.kwargs['cache_logger_on_first_use'] is True
        dict_config.assert_called_once()

    def test_setup_uses_json_renderer_for_json_format(self, mocker):
        configure = mocker.patch('src.monitoring.logging.structlog.configure')
        mocker.patch('src.monitoring.logging.logging.config.dictConfig')

        class JsonConfig(TestingConfig):
            LOG_FORMAT = 'json'

        setup_structured_logging(JsonConfig)

        renderer = configure.call_args.kwargs['processors'][-1]
        assert type(renderer).__name__ == 'JSONRenderer'

    def test_setup_creates_log_directory(self, mocker, tmp_path):
        mocker.patch('src.monitoring.logging.structlog.configure')
        mocker.patch('src.monitoring.logging.logging.config.dictConfig')
        log_path = tmp_path / 'logs' / 'validation.log'

        class FileConfig(TestingConfig):
            LOG_FILE_PATH = str(log_path)

        setup_structured_logging(FileConfig)

        assert log_path.parent.is_dir()

    def test_get_logger(self):
        logger = get_logger('business.rules')

        assert callable(logger.info)
