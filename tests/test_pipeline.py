"""
Integration Tests for the Per-Parcel Transform

These run the whole transform, either in memory through transform_parcel
or file-to-file through run_transform against a tmp_path workspace.
"""

import json
import os

import pytest

from county_transform.code_mapper import DeedTypeMapper
from county_transform.config import Settings
from county_transform.counties import citrus
from county_transform.errors import SchemaViolation, TransformError, UnknownEnumValue
from county_transform.pipeline import ParcelInputs, build_mappers, run_transform, transform_parcel


def rewrite_raw(settings, **changes):
    with open(settings.raw_fields_path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    raw.update(changes)
    with open(settings.raw_fields_path, "w", encoding="utf-8") as f:
        json.dump(raw, f)


def snapshot(output_dir):
    files = {}
    for name in os.listdir(output_dir):
        with open(os.path.join(output_dir, name), "rb") as f:
            files[name] = f.read()
    return files


def write_feed(settings, filename, record):
    path = settings.owners_path(filename)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"property_12345": record}, f)


# ============================================================================
# End to end
# ============================================================================

class TestRunTransform:
    """Tests for the file-to-file transform"""

    def test_output_files(self, parcel_workspace, read_output):
        written = run_transform(parcel_workspace)
        files = read_output(parcel_workspace.output_dir)

        assert set(files) == set(written)
        assert set(files) == {
            "property.json", "address.json", "geometry.json", "lot.json", "tax_1.json",
            "sales_1.json", "deed_1.json", "sales_2.json", "deed_2.json", "file_1.json",
            "person_1.json", "mailing_address.json",
            "relationship_property_address.json", "relationship_address_geometry.json",
            "relationship_property_lot.json", "relationship_property_tax.json",
            "relationship_property_sales_1.json", "relationship_property_sales_2.json",
            "relationship_sales_deed_1.json", "relationship_sales_deed_2.json",
            "relationship_deed_file.json", "relationship_sales_person.json",
            "relationship_person_mailing_address.json",
        }

    def test_sales_are_most_recent_first(self, parcel_workspace, read_output):
        run_transform(parcel_workspace)
        files = read_output(parcel_workspace.output_dir)

        assert files["sales_1.json"]["purchase_price_amount"] == 250000
        assert files["sales_1.json"]["ownership_transfer_date"] == "2021-06-01"
        assert files["sales_2.json"]["purchase_price_amount"] == 100000
        assert files["deed_2.json"]["deed_type"] == "Warranty Deed"
        assert files["relationship_deed_file.json"] == {
            "from": {"/": "./deed_2.json"},
            "to": {"/": "./file_1.json"},
        }

    def test_current_owner_linked_to_latest_sale(self, parcel_workspace, read_output):
        run_transform(parcel_workspace)
        files = read_output(parcel_workspace.output_dir)

        assert files["person_1.json"]["first_name"] == "Jane"
        assert files["person_1.json"]["last_name"] == "Doe"
        assert [name for name in files if name.startswith("relationship_sales_person")] == [
            "relationship_sales_person.json",
        ]
        assert files["relationship_sales_person.json"] == {
            "from": {"/": "./sales_1.json"},
            "to": {"/": "./person_1.json"},
        }

    def test_property_document(self, parcel_workspace, read_output):
        run_transform(parcel_workspace)
        property_data = read_output(parcel_workspace.output_dir)["property.json"]

        assert property_data["parcel_identifier"] == "12345"
        assert property_data["property_type"] == "SingleFamily"
        assert property_data["request_identifier"] == "12345"
        assert property_data["source_http_request"]["method"] == "GET"

    def test_every_relationship_resolves(self, parcel_workspace, read_output):
        run_transform(parcel_workspace)
        files = read_output(parcel_workspace.output_dir)

        relationships = {name: doc for name, doc in files.items() if name.startswith("relationship_")}
        assert relationships
        for name, relationship in relationships.items():
            for endpoint in ("from", "to"):
                target = relationship[endpoint]["/"]
                assert target.startswith("./")
                assert target[2:] in files, f"{name} points at missing {target}"

    def test_rerun_is_byte_identical(self, parcel_workspace):
        output_dir = parcel_workspace.output_dir

        run_transform(parcel_workspace)
        first = snapshot(output_dir)
        run_transform(parcel_workspace)
        second = snapshot(output_dir)

        assert first == second

    def test_unknown_property_code_writes_nothing(self, parcel_workspace):
        rewrite_raw(parcel_workspace, use_code="9999: UNKNOWN")

        with pytest.raises(UnknownEnumValue) as exc_info:
            run_transform(parcel_workspace)

        assert exc_info.value.path == "property.property_type"
        assert not os.path.exists(os.path.join(parcel_workspace.output_dir, "property.json"))

    def test_failure_keeps_previous_output(self, parcel_workspace):
        run_transform(parcel_workspace)
        rewrite_raw(parcel_workspace, use_code="9999: UNKNOWN")

        with pytest.raises(UnknownEnumValue):
            run_transform(parcel_workspace)
        assert os.path.exists(os.path.join(parcel_workspace.output_dir, "sales_2.json"))

    def test_feed_files(self, parcel_workspace, read_output):
        write_feed(parcel_workspace, "layout_data.json", {"layouts": [
            {"space_type": "Building", "building_number": 1},
            {"space_type": "Kitchen", "building_number": 1},
        ]})
        write_feed(parcel_workspace, "structure_data.json", {"building_number": 1, "roof_age_years": 8})
        write_feed(parcel_workspace, "utilities_data.json", {"utilities": [{"sewer_type": "Septic"}]})

        run_transform(parcel_workspace)
        files = read_output(parcel_workspace.output_dir)

        assert files["layout_2.json"]["space_type"] == "Kitchen"
        assert files["structure.json"]["roof_age_years"] == 8
        assert files["utility.json"]["sewer_type"] == "Septic"
        assert files["relationship_layout_structure.json"]["from"] == {"/": "./layout_1.json"}
        assert files["relationship_layout_utility.json"]["from"] == {"/": "./layout_1.json"}

    def test_single_building_feed_without_numbers(self, parcel_workspace, read_output):
        write_feed(parcel_workspace, "layout_data.json", {"layouts": [
            {"space_type": "Building", "floor_level": "2nd Floor"},
            {"space_type": "Bedroom"},
            {"space_type": "Bathroom", "floor_level": 3},
        ]})
        write_feed(parcel_workspace, "structure_data.json", {"roof_age_years": 8})

        run_transform(parcel_workspace)
        files = read_output(parcel_workspace.output_dir)

        assert files["relationship_layout_layout_1.json"] == {
            "from": {"/": "./layout_1.json"},
            "to": {"/": "./layout_2.json"},
        }
        assert files["relationship_layout_layout_2.json"]["to"] == {"/": "./layout_3.json"}
        assert files["relationship_property_layout.json"]["to"] == {"/": "./layout_1.json"}
        assert files["layout_2.json"]["floor_level"] == "2nd Floor"
        assert files["layout_3.json"]["floor_level"] == "3rd Floor"
        assert files["relationship_layout_structure.json"]["from"] == {"/": "./layout_1.json"}

    def test_output_dir_holding_inputs_is_refused(self, parcel_workspace):
        parcel_workspace.output_dir = parcel_workspace.input_dir

        with pytest.raises(TransformError) as exc_info:
            run_transform(parcel_workspace)

        assert exc_info.value.path == "output_dir"
        assert os.path.exists(os.path.join(parcel_workspace.input_dir, "property_seed.json"))

    def test_county_adapter_reads_input_html(self, tmp_path, citrus_html, seed, address_source, read_output):
        input_dir = tmp_path / "input"
        input_dir.mkdir()
        (input_dir / "input.html").write_text(citrus_html, encoding="utf-8")
        (input_dir / "property_seed.json").write_text(json.dumps(seed))
        (input_dir / "unnormalized_address.json").write_text(json.dumps(address_source))
        settings = Settings(input_dir=str(input_dir), output_dir=str(tmp_path / "data"))

        run_transform(settings, citrus)
        files = read_output(settings.output_dir)

        assert files["property.json"]["property_type"] == "SingleFamily"
        assert files["sales_1.json"]["purchase_price_amount"] == 250000
        assert files["deed_2.json"]["deed_type"] == "Warranty Deed"
        assert files["file_1.json"]["file_format"] == "pdf"
        assert files["tax_1.json"]["yearly_tax_amount"] == 2450.1
        assert "person_1.json" not in files


# ============================================================================
# In-memory transform
# ============================================================================

class TestTransformParcel:
    """Tests for graph construction without touching disk"""

    @pytest.fixture
    def inputs(self, raw_fields, mapper, seed, address_source, owners_by_date):
        return ParcelInputs(
            raw=raw_fields,
            classification_mapper=mapper,
            seed=seed,
            address_source=address_source,
            owners_by_date=owners_by_date,
        )

    def test_parcel_id_from_seed(self, inputs):
        del inputs.raw["parcel_id"]
        graph = transform_parcel(inputs)
        assert graph.of_kind("property")[0].payload["parcel_identifier"] == "12345"

    def test_layout_hierarchy(self, inputs):
        inputs.layouts = {"layouts": [
            {"space_type": "Building", "building_number": 1},
            {"space_type": "Bedroom", "building_number": 1},
            {"space_type": "Bedroom", "building_number": 1},
            {"space_type": "Pool", "is_exterior": True},
        ]}
        inputs.structures = {"structures": [{"building_number": 1}]}
        inputs.utilities = {"utilities": [{"cooling_system_type": "CentralAir"}]}

        relationships = transform_parcel(inputs).relationship_documents()

        assert relationships["relationship_layout_layout_1.json"] == {
            "from": {"/": "./layout_1.json"},
            "to": {"/": "./layout_2.json"},
        }
        assert "relationship_layout_layout_2.json" in relationships
        assert relationships["relationship_property_layout_2.json"]["to"] == {"/": "./layout_4.json"}
        assert relationships["relationship_layout_structure.json"]["from"] == {"/": "./layout_1.json"}
        assert relationships["relationship_layout_utility.json"]["from"] == {"/": "./layout_1.json"}

    def test_structures_without_building_layout_attach_to_property(self, inputs):
        inputs.structures = {"structures": [{"building_number": 1}, {"building_number": 2}]}

        relationships = transform_parcel(inputs).relationship_documents()

        assert relationships["relationship_property_structure_1.json"]["to"] == {"/": "./structure_1.json"}
        assert relationships["relationship_property_structure_2.json"]["to"] == {"/": "./structure_2.json"}

    def test_strict_deed_types(self, inputs):
        inputs.raw["sales"] = [{"date": "01/02/2003", "price": "$5", "instrument": "XYZ"}]
        inputs.deed_mapper = DeedTypeMapper(strict=True)

        with pytest.raises(UnknownEnumValue) as exc_info:
            transform_parcel(inputs)
        assert exc_info.value.path == "deed.deed_type"

    def test_lenient_deed_types(self, inputs):
        inputs.raw["sales"] = [{"date": "01/02/2003", "price": "$5", "instrument": "XYZ"}]
        graph = transform_parcel(inputs)
        assert graph.of_kind("deed")[0].payload["deed_type"] == "Miscellaneous"

    def test_schema_violation_is_fatal(self, inputs):
        inputs.raw["latitude"] = 123.0

        with pytest.raises(SchemaViolation) as exc_info:
            transform_parcel(inputs)
        assert exc_info.value.path == "geometry.latitude"

    def test_no_address_means_no_geometry(self, inputs):
        inputs.address_source = {}
        graph = transform_parcel(inputs)
        assert graph.count("address") == 0
        assert graph.count("geometry") == 0


class TestBuildMappers:
    """Tests for choosing the classification table"""

    def test_adapter_table(self):
        classification, deeds = build_mappers(Settings(strict_deed_types=True), citrus)
        assert classification.map("0100").property_type == "SingleFamily"
        assert deeds.strict is True

    def test_no_table_available(self):
        with pytest.raises(TransformError) as exc_info:
            build_mappers(Settings())
        assert exc_info.value.path == "code_table"
