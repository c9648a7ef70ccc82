import pytest
from protoc_graphql.descriptor.options import (
    EnumValueOptions,
    FieldOptions,
    MethodOptions,
    OptionIndex,
    parse_foreign_key,
    parse_loader,
)
from protoc_graphql.errors import OptionError


class TestForeignKey:
    def test_unset(self):
        assert parse_foreign_key("") is None

    def test_qualifies_type_name(self):
        fk = parse_foreign_key("acme.Team:team")
        assert fk.full_name == ".acme.Team"
        assert fk.field_name == "team"

    def test_already_qualified(self):
        assert parse_foreign_key(".acme.Team:team").full_name == ".acme.Team"

    @pytest.mark.parametrize("value", ["acme.Team", "acme.Team:team:extra"])
    def test_wrong_arity(self, value):
        with pytest.raises(OptionError, match="protobuf_type:field_name"):
            parse_foreign_key(value)


class TestLoader:
    def test_unset(self):
        assert parse_loader("", many=False) is None

    def test_paths(self):
        loader = parse_loader("acme.User:ids:users:id", many=True)
        assert loader.full_name == ".acme.User"
        assert loader.many is True
        assert loader.request_field_path == ["ids"]
        assert loader.response_field_path == ["users"]
        assert loader.object_key_field_path == ["id"]

    def test_dotted_paths(self):
        loader = parse_loader("acme.User:filter.ids:page.users:meta.id", many=False)
        assert loader.request_field_path == ["filter", "ids"]
        assert loader.response_field_path == ["page", "users"]
        assert loader.object_key_field_path == ["meta", "id"]

    def test_wrong_arity(self):
        with pytest.raises(OptionError, match="Loader expected to have format"):
            parse_loader("acme.User:ids:users", many=False)


class TestOptionIndex:
    def test_defaults_when_absent(self):
        index = OptionIndex()
        assert index.for_file("acme/user.proto").namespace == ""
        assert index.for_field(".acme.User.id") == FieldOptions()
        assert index.for_enum_value(".acme.Role.ADMIN") == EnumValueOptions()
        assert index.for_service(".acme.Users").skip is False
        assert index.for_method(".acme.Users.Get") == MethodOptions()

    def test_from_dict(self):
        index = OptionIndex.from_dict({
            "files": {"acme/user.proto": {"namespace": "Accounts"}},
            "fields": {".acme.User.team_id": {"foreign_key": "acme.Team:team"}},
            "enum_values": {".acme.Role.ROLE_ADMIN": {"name": "ADMIN", "deprecated": True}},
            "services": {".acme.Internal": {"skip": True}},
            "methods": {".acme.Users.Create": {"operation": "mutation"}},
        })
        assert index.for_file("acme/user.proto").namespace == "Accounts"
        assert index.for_field(".acme.User.team_id").foreign_key == "acme.Team:team"
        value = index.for_enum_value(".acme.Role.ROLE_ADMIN")
        assert value.name == "ADMIN"
        assert value.deprecated is True
        assert value.skip is False
        assert index.for_service(".acme.Internal").skip is True
        assert index.for_method(".acme.Users.Create").operation == "mutation"

    def test_from_dict_allows_missing_sections(self):
        index = OptionIndex.from_dict({"methods": None})
        assert index.methods == {}

    def test_unknown_section(self):
        with pytest.raises(OptionError, match="unknown option sections"):
            OptionIndex.from_dict({"messages": {}})

    def test_unknown_option(self):
        with pytest.raises(OptionError, match="invalid fields options for .acme.User.id"):
            OptionIndex.from_dict({"fields": {".acme.User.id": {"primary": True}}})
