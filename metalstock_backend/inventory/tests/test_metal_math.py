# inventory/tests/test_metal_math.py

from decimal import Decimal

from django.test import SimpleTestCase

from inventory.models import MaterialSpec
from inventory.services.exceptions import (
    InvalidQuantityError,
    UnitConversionError,
    UnsupportedShapeError,
)
from inventory.services.metal_math import (
    calculate_weight,
    convert_quantity,
    density_for,
    length_for_weight,
    material_weight_per_meter,
    weight_per_meter,
    weight_to_meters,
)


STEEL = Decimal("7.85")


class WeightCalculationTests(SimpleTestCase):
    """
    Geometry -> mass.

    GUARANTEES:
    - Each supported profile uses its own volume formula
    - Results are rounded half-up to 2 decimals at the boundary only
    - Invalid geometry never produces a number
    """

    def test_round_bar(self):
        # π · 1² · 100 cm³ × 7.85 g/cm³ = 2.466 kg
        self.assertEqual(
            calculate_weight("round", {"diameter_mm": 20}, 1000, STEEL),
            Decimal("2.47"),
        )

    def test_full_round_bar(self):
        self.assertEqual(
            calculate_weight("round", {"diameter_mm": 50}, 6000, STEEL),
            Decimal("92.48"),
        )

    def test_short_dimension_keys_are_accepted(self):
        self.assertEqual(
            calculate_weight("round", {"d": 20}, 1000, STEEL),
            calculate_weight("round", {"diameter_mm": 20}, 1000, STEEL),
        )

    def test_hex_bar(self):
        self.assertEqual(
            calculate_weight("hex", {"diameter_mm": 20}, 1000, STEEL),
            Decimal("2.72"),
        )

    def test_tube(self):
        self.assertEqual(
            calculate_weight("tube", {"diameter_mm": 60, "wall_mm": 4}, 1000, STEEL),
            Decimal("5.52"),
        )

    def test_plate_and_box_share_the_rectangular_formula(self):
        dims = {"width_mm": 100, "height_mm": 10}
        self.assertEqual(calculate_weight("plate", dims, 1000, STEEL), Decimal("7.85"))
        self.assertEqual(calculate_weight("box", dims, 1000, STEEL), Decimal("7.85"))

    def test_shape_name_is_case_insensitive(self):
        self.assertEqual(
            calculate_weight("ROUND", {"diameter_mm": 20}, 1000, STEEL),
            Decimal("2.47"),
        )

    def test_unknown_shape_is_rejected(self):
        with self.assertRaises(UnsupportedShapeError):
            calculate_weight("triangle", {"diameter_mm": 20}, 1000, STEEL)

    def test_negative_length_is_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            calculate_weight("round", {"diameter_mm": 20}, -1, STEEL)

    def test_non_finite_input_is_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            calculate_weight("round", {"diameter_mm": float("nan")}, 1000, STEEL)
        with self.assertRaises(InvalidQuantityError):
            calculate_weight("round", {"diameter_mm": 20}, float("inf"), STEEL)

    def test_zero_density_is_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            calculate_weight("round", {"diameter_mm": 20}, 1000, 0)

    def test_missing_dimension_is_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            calculate_weight("tube", {"diameter_mm": 60}, 1000, STEEL)

    def test_tube_wall_cannot_exceed_radius(self):
        with self.assertRaises(InvalidQuantityError):
            calculate_weight("tube", {"diameter_mm": 20, "wall_mm": 11}, 1000, STEEL)

    def test_weight_per_meter_keeps_four_decimals(self):
        self.assertEqual(
            weight_per_meter("round", {"diameter_mm": 20}, STEEL),
            Decimal("2.4662"),
        )

    def test_fifty_millimetre_bar_one_metre(self):
        self.assertEqual(
            calculate_weight("round", {"diameter_mm": 50}, 1000, STEEL),
            Decimal("15.41"),
        )

    def test_weight_grows_with_length(self):
        weights = [
            calculate_weight("round", {"diameter_mm": 20}, length, STEEL)
            for length in (100, 500, 1000, 3000, 6000)
        ]
        self.assertEqual(weights, sorted(weights))
        self.assertEqual(len(set(weights)), len(weights))

    def test_weight_grows_with_density(self):
        weights = [
            calculate_weight("round", {"diameter_mm": 20}, 1000, Decimal(density))
            for density in ("2.70", "7.85", "8.96")
        ]
        self.assertEqual(weights, sorted(weights))
        self.assertEqual(len(set(weights)), len(weights))


class InverseCalculationTests(SimpleTestCase):
    """
    Mass -> length for round bar.

    GUARANTEES:
    - Whole millimetres, rounded half-up
    - Any other shape is rejected
    """

    def test_length_for_weight_round_bar(self):
        self.assertEqual(length_for_weight(Decimal("2.466"), 20, STEEL), 1000)

    def test_length_for_weight_inverts_calculate_weight(self):
        for diameter, length in ((20, 1000), (50, 1000), (50, 6000)):
            mass = calculate_weight("round", {"diameter_mm": diameter}, length, STEEL)
            # mass is rounded to 0.01 kg, worth ~2 mm on a Ø20 bar
            self.assertAlmostEqual(length_for_weight(mass, diameter, STEEL), length, delta=3)

    def test_length_for_weight_rejects_other_shapes(self):
        with self.assertRaises(UnsupportedShapeError):
            length_for_weight(Decimal("2.72"), 20, STEEL, shape="hex")

    def test_length_for_weight_rejects_zero_diameter(self):
        with self.assertRaises(InvalidQuantityError):
            length_for_weight(Decimal("2.466"), 0, STEEL)

    def test_weight_to_meters(self):
        self.assertEqual(weight_to_meters(Decimal("24.66"), 20, STEEL), Decimal("10.00"))


class DensityTests(SimpleTestCase):
    def test_known_material_types(self):
        self.assertEqual(density_for("aluminum"), Decimal("2.70"))
        self.assertEqual(density_for("Stainless"), Decimal("7.90"))

    def test_unknown_material_type_falls_back_to_default(self):
        self.assertEqual(density_for("unobtainium"), Decimal("7.85"))
        self.assertEqual(density_for(None), Decimal("7.85"))


class UnitConversionTests(SimpleTestCase):
    """
    Quantity conversion between kg, m and mm.

    GUARANTEES:
    - mm <-> m never needs the material
    - kg <-> length uses the material's kg/m
    - unsupported pairs raise UnitConversionError
    """

    def setUp(self):
        self.material = MaterialSpec(
            code="AC4R020",
            shape=MaterialSpec.Shape.ROUND,
            weight_per_meter=Decimal("2.0000"),
        )

    def test_identity(self):
        self.assertEqual(
            convert_quantity(self.material, "3.5", "kg", "kg"), Decimal("3.5000")
        )

    def test_millimetres_to_metres(self):
        self.assertEqual(
            convert_quantity(self.material, 2500, "mm", "m"), Decimal("2.5000")
        )

    def test_metres_to_kilograms(self):
        self.assertEqual(
            convert_quantity(self.material, 10, "m", "kg"), Decimal("20.0000")
        )

    def test_kilograms_to_metres_and_millimetres(self):
        self.assertEqual(convert_quantity(self.material, 5, "kg", "m"), Decimal("2.5000"))
        self.assertEqual(convert_quantity(self.material, 3, "kg", "mm"), Decimal("1500.0000"))

    def test_millimetres_to_kilograms(self):
        self.assertEqual(
            convert_quantity(self.material, 1500, "mm", "kg"), Decimal("3.0000")
        )

    def test_units_cannot_be_converted_to_length(self):
        with self.assertRaises(UnitConversionError):
            convert_quantity(self.material, 4, "un", "kg")

    def test_weight_conversion_needs_weight_per_meter(self):
        unknown = MaterialSpec(code="MISC", shape=MaterialSpec.Shape.ROUND)
        with self.assertRaises(UnitConversionError):
            convert_quantity(unknown, 4, "m", "kg")

    def test_weight_per_meter_derived_from_geometry(self):
        material = MaterialSpec(
            code="AC4R020",
            shape=MaterialSpec.Shape.ROUND,
            diameter_mm=Decimal("20"),
            density=STEEL,
        )
        self.assertEqual(material_weight_per_meter(material), Decimal("2.4662"))
