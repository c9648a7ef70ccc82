import pytest
from protoc_graphql.errors import MappingError
from protoc_graphql.generator import file_types, generate, output_file_name
from protoc_graphql.mapper.mapper import Mapper
from protoc_graphql.mapper.parameters import Parameters

from proto_builders import (
    FieldProto,
    make_enum,
    make_field,
    make_file,
    make_message,
    make_method,
    make_service,
    message_field,
    string_field,
    timestamp_file,
)


def _user_file():
    return make_file(
        name="acme/user.proto",
        enums=[make_enum("Role", ["ROLE_UNKNOWN", "ROLE_ADMIN"])],
        messages=[
            make_message("User", fields=[
                string_field("id", 1),
                make_field("role", 2, FieldProto.TYPE_ENUM, type_name=".acme.Role"),
                message_field("address", 3, ".acme.Address"),
            ]),
            make_message("Address", fields=[string_field("city", 1)]),
            make_message("GetUserRequest", fields=[string_field("id", 1)]),
        ],
        services=[
            make_service("Users", [make_method("GetUser", ".acme.GetUserRequest", ".acme.User")]),
        ],
    )


_USER_SCHEMA = """\
enum Acme_Role {
  ROLE_UNKNOWN
  ROLE_ADMIN
}

type Acme_Address {
  city: String!
}

type Acme_User {
  id: String!
  role: Acme_Role!
  address: Acme_Address
}

type Acme_GetUserRequest {
  id: String!
}

input Acme_GetUserRequest_Input {
  id: String
}

type Acme_Users_Query {
  getUser(input: Acme_GetUserRequest_Input!): Acme_User!
}
"""


def _event_file(name, message):
    return make_file(name=name, dependencies=["google/protobuf/timestamp.proto"], messages=[
        make_message(message, fields=[message_field("at", 1, ".google.protobuf.Timestamp")]),
    ])


class TestOutputFileName:
    def test_proto_suffix_replaced(self):
        assert output_file_name("acme/user.proto") == "acme/user_pb.graphql"

    def test_other_names(self):
        assert output_file_name("user") == "user_pb.graphql"


class TestGenerate:
    def test_full_schema(self):
        outputs = generate([_user_file()], ["acme/user.proto"])
        assert outputs == {"acme/user_pb.graphql": _USER_SCHEMA}

    def test_idempotent(self):
        first = generate([_user_file()], ["acme/user.proto"])
        second = generate([_user_file()], ["acme/user.proto"])
        assert first == second

    def test_only_requested_files(self):
        files = [timestamp_file(), _event_file("acme/event.proto", "Event")]
        outputs = generate(files, ["acme/event.proto"])
        assert list(outputs) == ["acme/event_pb.graphql"]
        assert "type Acme_Event {\n  at: GoogleProtobuf_Timestamp\n}" in outputs["acme/event_pb.graphql"]
        assert "GoogleProtobuf_Timestamp {" not in outputs["acme/event_pb.graphql"]

    def test_file_without_declarations(self):
        files = [make_file(name="acme/empty.proto"), _user_file()]
        outputs = generate(files, ["acme/empty.proto", "acme/user.proto"])
        assert list(outputs) == ["acme/user_pb.graphql"]

    def test_unknown_file(self):
        with pytest.raises(MappingError, match="acme/missing.proto"):
            generate([_user_file()], ["acme/missing.proto"])

    def test_custom_scalar_declared_once(self):
        files = [
            timestamp_file(),
            _event_file("acme/event.proto", "Event"),
            _event_file("acme/audit.proto", "Audit"),
        ]
        outputs = generate(
            files, ["acme/event.proto", "acme/audit.proto"], Parameters.parse("timestamp=DateTime")
        )
        assert outputs["acme/event_pb.graphql"] == (
            "scalar DateTime\n"
            "\n"
            "type Acme_Event {\n"
            "  at: DateTime\n"
            "}\n"
        )
        assert outputs["acme/audit_pb.graphql"] == (
            "type Acme_Audit {\n"
            "  at: DateTime\n"
            "}\n"
        )

    def test_extend_root_types_last(self):
        outputs = generate([_user_file()], ["acme/user.proto"], Parameters.parse("root_type_prefix="))
        assert outputs["acme/user_pb.graphql"].endswith(
            "type Acme_Users_Query {\n"
            "  getUser(input: Acme_GetUserRequest_Input!): Acme_User!\n"
            "}\n"
            "\n"
            "extend type Query {\n"
            "  users: Acme_Users_Query!\n"
            "}\n"
        )


class TestFileTypes:
    def test_oneof_declarations_follow_their_object(self):
        file = make_file(messages=[
            make_message("Pet", fields=[
                string_field("dog_name", 1, oneof_index=0),
                string_field("cat_name", 2, oneof_index=0),
            ], oneofs=["kind"]),
        ])
        types = file_types(Mapper([file]), "acme/test.proto")
        assert [t.name for t in types] == [
            "Acme_Pet",
            "Acme_Pet_Kind",
            "Acme_Pet_Kind_DogName",
            "Acme_Pet_Kind_CatName",
        ]

    def test_oneof_inputs_follow_their_input(self):
        file = make_file(messages=[
            make_message("Pet", fields=[string_field("dog_name", 1, oneof_index=0)], oneofs=["kind"]),
        ])
        types = file_types(Mapper([file], Parameters.parse("input_mode=all")), "acme/test.proto")
        assert [t.name for t in types][-2:] == ["Acme_Pet_Input", "Acme_Pet_Kind_Input"]
