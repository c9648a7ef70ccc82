import pytest
from protoc_graphql.errors import ParameterError
from protoc_graphql.mapper.parameters import (
    INPUT_MODE_ALL,
    INPUT_MODE_NONE,
    INPUT_MODE_SERVICE,
    JS_64BIT_TYPE_NUMBER,
    JS_64BIT_TYPE_STRING,
    Parameters,
)


class TestDefaults:
    def test_empty_string(self):
        params = Parameters.parse("")
        assert params == Parameters()
        assert params.input_mode == INPUT_MODE_SERVICE
        assert params.js_64bit_type == JS_64BIT_TYPE_STRING
        assert params.root_type_prefix is None
        assert params.wrappers_as_null is False
        assert params.trim_prefix == ""

    def test_default_transformers(self):
        params = Parameters()
        assert params.field_name_transformer("created_at") == "createdAt"
        assert params.method_name_transformer("GetUser") == "getUser"


class TestParse:
    def test_type_overrides(self):
        params = Parameters.parse("timestamp=DateTime,duration=Duration,struct=JSON")
        assert params.timestamp_type_name == "DateTime"
        assert params.duration_type_name == "Duration"
        assert params.struct_type_name == "JSON"

    def test_flags_and_choices(self):
        params = Parameters.parse("null_wrappers,input_mode=all,js_64bit_type=number")
        assert params.wrappers_as_null is True
        assert params.input_mode == INPUT_MODE_ALL
        assert params.js_64bit_type == JS_64BIT_TYPE_NUMBER

    def test_input_mode_none(self):
        assert Parameters.parse("input_mode=none").input_mode == INPUT_MODE_NONE

    def test_root_type_prefix_may_be_empty(self):
        assert Parameters.parse("root_type_prefix=").root_type_prefix == ""
        assert Parameters.parse("root_type_prefix=Acme").root_type_prefix == "Acme"

    def test_preserve_field_names(self):
        params = Parameters.parse("field_name=preserve")
        assert params.field_name_transformer("created_at") == "created_at"
        assert params.method_name_transformer("GetUser") == "GetUser"

    def test_trim_prefix_and_options(self):
        params = Parameters.parse("trim_prefix=Acme_,options=graphql.json")
        assert params.trim_prefix == "Acme_"
        assert params.options_path == "graphql.json"

    def test_empty_parts_are_ignored(self):
        assert Parameters.parse(",null_wrappers,").wrappers_as_null is True


class TestParseErrors:
    @pytest.mark.parametrize("parameter, message", [
        ("timestamp", "missing type for timestamp"),
        ("duration=", "missing type for duration"),
        ("struct", "missing type for struct"),
        ("options", "missing path for options"),
        ("bogus=1", "unknown parameter: bogus"),
    ])
    def test_messages(self, parameter, message):
        with pytest.raises(ParameterError) as exc_info:
            Parameters.parse(parameter)
        assert message in str(exc_info.value)

    @pytest.mark.parametrize("parameter", [
        "input_mode=some",
        "js_64bit_type=bigint",
        "field_name=snake",
    ])
    def test_invalid_choice(self, parameter):
        with pytest.raises(ParameterError, match="invalid value for"):
            Parameters.parse(parameter)
