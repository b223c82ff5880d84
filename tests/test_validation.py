"""Unit tests for argument validation and the models built from it."""

import pytest

from klog.exceptions import ConfigurationError, InvalidPatternError
from klog.models import LogOptions
from klog.validation import (
    sanitize_pod_name, validate_keyword, validate_max_concurrency, validate_regex_pattern,
    validate_since_hours, validate_tail_lines,
)


class TestPatterns:
    """Tests for validate_regex_pattern() and validate_keyword()."""

    def test_pod_pattern_is_trimmed(self):
        assert validate_regex_pattern('  ^api-  ').pattern == '^api-'

    @pytest.mark.parametrize('pattern', ['', '   ', None])
    def test_empty_pod_pattern(self, pattern):
        with pytest.raises(InvalidPatternError):
            validate_regex_pattern(pattern)

    def test_invalid_pod_pattern(self):
        with pytest.raises(InvalidPatternError):
            validate_regex_pattern('api-[')

    def test_keyword_keeps_spaces(self):
        assert validate_keyword(' id=').pattern == ' id='

    def test_empty_keyword_disables_highlighting(self):
        assert validate_keyword('') is None
        assert validate_keyword(None) is None

    def test_invalid_keyword(self):
        with pytest.raises(InvalidPatternError):
            validate_keyword('(unclosed')


class TestNumbers:
    """Tests for the numeric validators."""

    def test_max_concurrency(self):
        assert validate_max_concurrency(10) == 10

    @pytest.mark.parametrize('value', [0, -1, True, 2.5])
    def test_bad_max_concurrency(self, value):
        with pytest.raises(ConfigurationError):
            validate_max_concurrency(value)

    def test_since_hours(self):
        assert validate_since_hours(None) is None
        assert validate_since_hours(3) == 3
        with pytest.raises(ConfigurationError):
            validate_since_hours(0)

    def test_tail_lines(self):
        assert validate_tail_lines(None) is None
        assert validate_tail_lines(0) == 0
        with pytest.raises(ConfigurationError):
            validate_tail_lines(-5)

    def test_sanitize_pod_name(self):
        assert sanitize_pod_name('  api-1 ') == 'api-1'
        assert sanitize_pod_name('') == ''
        assert len(sanitize_pod_name('x' * 300)) == 253


class TestLogOptions:
    """Tests for LogOptions.to_api_kwargs()."""

    def test_defaults(self):
        assert LogOptions().to_api_kwargs() == {'follow': True, 'previous': False, 'timestamps': True}

    def test_since_is_converted_to_seconds(self):
        kwargs = LogOptions(since_hours=1, tail_lines=0).to_api_kwargs()
        assert kwargs['since_seconds'] == 3600
        assert kwargs['tail_lines'] == 0
