import json

import pytest

from google.protobuf import descriptor_pb2, text_format

from protoc_docmodel.assembler import build_model, parse_file


def _file(text: str) -> descriptor_pb2.FileDescriptorProto:
    return text_format.Parse(text, descriptor_pb2.FileDescriptorProto())


MAPS = _file("""
name: "maps.proto"
package: "pkg"
syntax: "proto3"
message_type {
  name: "M"
  field { name: "entries" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".pkg.M.EntriesEntry" }
  field { name: "plain" number: 2 label: LABEL_OPTIONAL type: TYPE_STRING }
  field { name: "lookup" number: 3 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".pkg.M.LookupEntry" oneof_index: 0 }
  nested_type {
    name: "EntriesEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
    options { map_entry: true }
  }
  nested_type {
    name: "LookupEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_INT64 }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".pkg.Target" }
    options { map_entry: true }
  }
  oneof_decl { name: "choice" }
}
message_type { name: "Target" }
message_type {
  name: "Broken"
  field { name: "ghost" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".pkg.Broken.GhostEntry" }
}
""")

ZOO_A = _file("""
name: "zoo/a.proto"
package: "zoo"
syntax: "proto3"
message_type { name: "Zebra" }
message_type { name: "Ant" nested_type { name: "Leg" } enum_type { name: "Kind" } }
enum_type { name: "Size" }
service { name: "Keeper" }
service { name: "Feeder" }
source_code_info {
  location { path: [12] span: [2, 0, 18] leading_comments: " Animals, part A.\\n" }
}
""")

ZOO_B = _file("""
name: "zoo/b.proto"
package: "zoo"
syntax: "proto3"
message_type { name: "Bee" }
enum_type { name: "Area" }
source_code_info {
  location { path: [12] span: [0, 0, 18] leading_comments: " @exclude hidden\\n" }
}
""")

PLAIN = _file("""
name: "plain.proto"
syntax: "proto3"
message_type { name: "Loose" }
source_code_info {
  location { path: [12] span: [1, 0, 18] leading_comments: " No package here.\\n" }
}
""")

PROTO2_EXT = _file("""
name: "ext.proto"
package: "zoo"
syntax: "proto2"
message_type { name: "Base" extension_range { start: 100 end: 200 } }
extension { name: "zeta" number: 101 label: LABEL_OPTIONAL type: TYPE_INT32 extendee: ".zoo.Base" }
extension { name: "alpha" number: 100 label: LABEL_OPTIONAL type: TYPE_STRING extendee: ".zoo.Base" }
""")


class TestMapResolution:
    def test_map_field_key_and_value(self):
        model = build_model([MAPS])
        m = model.message("pkg.M")
        assert m.long_name == "M"
        entries = m.fields[0]
        assert entries.name == "entries"
        assert entries.is_map is True
        assert entries.map_key_type == "string"
        assert entries.map_value_type == "int32"

    def test_entry_message_is_internal_and_unlisted(self):
        model = build_model([MAPS])
        listed = [m.long_name for m in model.files[0].messages]
        assert "M.EntriesEntry" not in listed
        assert listed == ["Broken", "M", "Target"]
        assert "pkg.M.EntriesEntry" in model.links
        assert model.message("pkg.M.EntriesEntry").internal is True
        assert [m.full_name for m in model.packages[0].messages] == ["pkg.Broken", "pkg.M", "pkg.Target"]

    def test_oneof_member_map_resolved(self):
        model = build_model([MAPS])
        m = model.message("pkg.M")
        lookup = m.oneofs[0].fields[0]
        assert lookup.is_map is True
        assert lookup.map_key_type == "int64"
        assert lookup.map_value_type == "pkg.Target"
        assert model.message("pkg.M.LookupEntry").internal is True

    def test_unresolvable_map_entry_left_unset(self):
        model = build_model([MAPS])
        ghost = model.message("pkg.Broken").fields[0]
        assert ghost.is_map is True
        assert ghost.map_key_type == ""
        assert ghost.map_value_type == ""


class TestFilesAndPackages:
    def test_file_collections_sorted_by_long_name(self):
        model = build_model([ZOO_A])
        f = model.files[0]
        assert [m.long_name for m in f.messages] == ["Ant", "Ant.Leg", "Zebra"]
        assert [e.long_name for e in f.enums] == ["Ant.Kind", "Size"]
        assert [s.name for s in f.services] == ["Feeder", "Keeper"]
        assert f.has_messages and f.has_enums and f.has_services
        assert f.has_extensions is False

    def test_extensions_sorted(self):
        f = parse_file(PROTO2_EXT)
        assert [e.name for e in f.extensions] == ["alpha", "zeta"]
        assert f.has_extensions is True

    def test_file_description(self):
        model = build_model([ZOO_A, ZOO_B])
        assert model.files[0].description == "Animals, part A."
        assert model.files[1].description == ""

    def test_files_keep_input_order(self):
        model = build_model([ZOO_B, PLAIN, ZOO_A])
        assert [f.name for f in model.files] == ["zoo/b.proto", "plain.proto", "zoo/a.proto"]

    def test_packages_aggregate_across_files(self):
        model = build_model([ZOO_B, PLAIN, ZOO_A, PROTO2_EXT])
        assert [p.name for p in model.packages] == ["", "zoo"]
        zoo = model.packages[1]
        assert [m.full_name for m in zoo.messages] == [
            "zoo.Ant", "zoo.Ant.Leg", "zoo.Base", "zoo.Bee", "zoo.Zebra",
        ]
        assert [e.full_name for e in zoo.enums] == ["zoo.Ant.Kind", "zoo.Area", "zoo.Size"]
        assert [s.full_name for s in zoo.services] == ["zoo.Feeder", "zoo.Keeper"]
        assert [(d.file, d.description) for d in zoo.descriptions] == [("zoo/a.proto", "Animals, part A.")]

    def test_empty_package(self):
        model = build_model([PLAIN])
        pkg = model.packages[0]
        assert pkg.name == ""
        assert pkg.messages[0].full_name == "Loose"
        assert pkg.descriptions[0].description == "No package here."


class TestLinks:
    def test_one_link_per_message_and_enum(self):
        model = build_model([ZOO_A, ZOO_B, MAPS])
        expected = {
            "zoo.Ant", "zoo.Ant.Leg", "zoo.Zebra", "zoo.Bee",
            "zoo.Ant.Kind", "zoo.Size", "zoo.Area",
            "pkg.M", "pkg.M.EntriesEntry", "pkg.M.LookupEntry", "pkg.Target", "pkg.Broken",
        }
        assert set(model.links) == expected
        assert len(model.links) == len(expected)

    def test_link_points_at_package(self):
        model = build_model([ZOO_A, MAPS])
        link = model.link("zoo.Ant.Kind")
        assert link.package == "zoo"
        assert link.full_name == "zoo.Ant.Kind"
        assert link.is_external is False
        assert model.link(".pkg.Target").package == "pkg"
        assert model.link("zoo.Nope") is None

    def test_links_are_read_only(self):
        model = build_model([ZOO_A])
        with pytest.raises(TypeError):
            model.links["x"] = None


class TestDeterminism:
    def test_same_input_same_model(self):
        inputs = [ZOO_A, ZOO_B, MAPS, PLAIN, PROTO2_EXT]
        assert build_model(inputs).to_json() == build_model(inputs).to_json()

    def test_input_is_not_mutated(self):
        before = MAPS.SerializeToString()
        build_model([MAPS])
        assert MAPS.SerializeToString() == before


class TestSerialization:
    def test_message_and_field_keys(self):
        data = build_model([MAPS]).to_dict()
        message = data["files"][0]["messages"][1]
        assert set(message) == {
            "name", "longName", "fullName", "description", "hasExtensions",
            "hasFields", "hasOneofs", "extensions", "fields", "oneofs",
        }
        assert set(message["fields"][0]) == {
            "name", "description", "label", "type", "longType", "fullType",
            "ismap", "mapKeyType", "mapValueType", "isoneof", "oneofdecl", "defaultValue",
        }
        assert message["fields"][0]["ismap"] is True

    def test_map_types_and_oneof_members_serialized(self):
        message = json.loads(build_model([MAPS]).to_json())["files"][0]["messages"][1]
        entries = message["fields"][0]
        assert (entries["mapKeyType"], entries["mapValueType"]) == ("string", "int32")
        assert message["hasOneofs"] is True
        assert [o["name"] for o in message["oneofs"]] == ["choice"]
        lookup = message["oneofs"][0]["fields"][0]
        assert lookup["name"] == "lookup"
        assert lookup["isoneof"] is True
        assert (lookup["mapKeyType"], lookup["mapValueType"]) == ("int64", "pkg.Target")

    def test_scalars_listed(self):
        data = json.loads(build_model([]).to_json())
        assert [s["protoType"] for s in data["scalarValueTypes"]][:3] == ["double", "float", "int32"]
        assert len(data["scalarValueTypes"]) == 15
        assert data["files"] == []
