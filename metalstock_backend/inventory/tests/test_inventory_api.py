# inventory/tests/test_inventory_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from inventory.models import MaterialSpec, StockLot, StockMovement
from inventory.services.stock_operations import intake_lot
from permissions.roles import ROLE_MANAGER, ROLE_OPERATOR, ROLE_VIEWER


User = get_user_model()

MATERIALS_URL = "/api/inventory/materials/"
LOTS_URL = "/api/inventory/lots/"
MOVEMENTS_URL = "/api/inventory/movements/"


class InventoryApiTestBase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(
            email="manager@example.com", password="password123", role=ROLE_MANAGER
        )
        self.operator = User.objects.create_user(
            email="operator@example.com", password="password123", role=ROLE_OPERATOR
        )
        self.viewer = User.objects.create_user(
            email="viewer@example.com", password="password123", role=ROLE_VIEWER
        )

        self.material = MaterialSpec.objects.create(
            code="AC4R020",
            description="Varão aço redondo Ø20",
            weight_per_meter=Decimal("2.0000"),
            min_stock=Decimal("10"),
        )
        self.lot = intake_lot(material=self.material, count=2, unit_cost="1.00")


class MaterialApiTests(InventoryApiTestBase):
    """
    Material endpoints.

    GUARANTEES:
    - Anonymous users are rejected
    - Viewers read; only inventory editors write
    - Stock figures are computed from lots, never written through the API
    - Materials with stock history cannot be deleted
    """

    def test_anonymous_is_rejected(self):
        res = self.client.get(MATERIALS_URL)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_viewer_lists_materials_with_stock(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.get(MATERIALS_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        row = res.data["results"][0]
        self.assertEqual(row["code"], "AC4R020")
        self.assertEqual(Decimal(row["available_stock"]), Decimal("24"))
        self.assertEqual(row["stock_status"], "ok")

    def test_search(self):
        MaterialSpec.objects.create(code="TUB060", description="Tubo aço Ø60", unit="m")
        self.client.force_authenticate(self.viewer)

        res = self.client.get(MATERIALS_URL, {"search": "tubo"})

        self.assertEqual([r["code"] for r in res.data["results"]], ["TUB060"])

    def test_viewer_cannot_create(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.post(MATERIALS_URL, {"code": "NEW1", "description": "x"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_operator_creates_material_code_uppercased(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            MATERIALS_URL,
            {"code": "inox304r030", "description": "Varão inox", "material_type": "stainless"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["code"], "INOX304R030")

    def test_prices_are_read_only(self):
        self.client.force_authenticate(self.manager)
        res = self.client.patch(
            f"{MATERIALS_URL}{self.material.id}/", {"last_price": "99"}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.material.refresh_from_db()
        self.assertEqual(self.material.last_price, Decimal("1.0000"))

    def test_invalid_density_is_rejected(self):
        self.client.force_authenticate(self.manager)
        res = self.client.patch(
            f"{MATERIALS_URL}{self.material.id}/", {"density": "0"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_material_with_stock_cannot_be_deleted(self):
        self.client.force_authenticate(self.manager)
        res = self.client.delete(f"{MATERIALS_URL}{self.material.id}/")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(MaterialSpec.objects.filter(pk=self.material.pk).exists())

    def test_stock_readout(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.get(f"{MATERIALS_URL}{self.material.id}/stock/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["basis"], "weight")
        self.assertEqual(Decimal(res.data["available"]), Decimal("24"))
        self.assertEqual(Decimal(res.data["length_mm"]), Decimal("12000"))

    def test_low_stock(self):
        MaterialSpec.objects.create(
            code="PAR-M10", description="Parafuso", unit="un", min_stock=Decimal("100")
        )
        self.client.force_authenticate(self.viewer)
        res = self.client.get(f"{MATERIALS_URL}low-stock/")

        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["code"], "PAR-M10")
        self.assertEqual(res.data["results"][0]["status"], "critical")

    def test_weight_calculator(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.post(
            f"{MATERIALS_URL}weight/",
            {"shape": "round", "diameter_mm": "20", "length_mm": "1000"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["weight_kg"], "2.47")
        self.assertEqual(res.data["weight_per_meter"], "2.4662")

    def test_weight_calculator_rejects_unknown_shape(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.post(
            f"{MATERIALS_URL}weight/",
            {"shape": "star", "diameter_mm": "20", "length_mm": "1000"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_catalog_import_needs_capability(self):
        payload = {"rows": [{"code": "AC4R050", "description": "Varão aço Ø50"}]}

        self.client.force_authenticate(self.operator)
        res = self.client.post(f"{MATERIALS_URL}import/", payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.manager)
        res = self.client.post(f"{MATERIALS_URL}import/", payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["created"], 1)
        self.assertTrue(MaterialSpec.objects.filter(code="AC4R050").exists())


class LotApiTests(InventoryApiTestBase):
    """
    GUARANTEES:
    - Intake returns the new lot and books an IN movement
    - Adjustments need inventory.adjust (operators cannot)
    - Cuts return the shortened lot, the offcut and the movement
    """

    def test_intake(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            LOTS_URL,
            {"material": str(self.material.id), "count": "1", "unit_cost": "1.20"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["material_code"], "AC4R020")
        self.assertEqual(Decimal(res.data["weight"]), Decimal("12"))
        self.assertEqual(
            StockMovement.objects.filter(lot_id=res.data["id"], movement_type="IN").count(), 1
        )

    def test_intake_unknown_material(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            LOTS_URL,
            {"material": "00000000-0000-0000-0000-000000000000", "count": "1"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_adjust_permissions(self):
        url = f"{LOTS_URL}{self.lot.id}/adjust/"

        self.client.force_authenticate(self.operator)
        res = self.client.post(url, {"count_delta": "-1"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.manager)
        res = self.client.post(url, {"count_delta": "-1"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(res.data["lot"]["count"]), Decimal("1"))
        self.assertEqual(res.data["movement"]["movement_type"], "ADJUST")

    def test_adjust_below_zero(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            f"{LOTS_URL}{self.lot.id}/adjust/", {"count_delta": "-5"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cut(self):
        self.client.force_authenticate(self.operator)
        res = self.client.post(
            f"{LOTS_URL}{self.lot.id}/cut/",
            {"cut_length_mm": "2500", "remainder_action": "offcut"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["offcut"]["kind"], StockLot.Kind.OFFCUT)
        self.assertEqual(Decimal(res.data["offcut"]["length_mm"]), Decimal("3500"))
        self.assertEqual(res.data["movement"]["movement_type"], "CUT")

    def test_consumed_lots_hidden_by_default(self):
        StockLot.objects.filter(pk=self.lot.pk).update(count=0, status=StockLot.Status.CONSUMED)
        self.client.force_authenticate(self.viewer)

        res = self.client.get(LOTS_URL)
        self.assertEqual(res.data["count"], 0)

        res = self.client.get(LOTS_URL, {"include_consumed": "true"})
        self.assertEqual(res.data["count"], 1)

    def test_lots_are_not_editable(self):
        self.client.force_authenticate(self.manager)
        res = self.client.patch(f"{LOTS_URL}{self.lot.id}/", {"count": "9"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class MovementApiTests(InventoryApiTestBase):
    def test_ledger_is_read_only(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(MOVEMENTS_URL, {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_filter_by_type(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.get(MOVEMENTS_URL, {"movement_type": "IN"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(Decimal(res.data["results"][0]["quantity_delta"]), Decimal("24"))

    def test_cost_summary_needs_reports_capability(self):
        self.client.force_authenticate(self.operator)
        res = self.client.get(f"{MOVEMENTS_URL}cost-summary/")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.viewer)
        res = self.client.get(f"{MOVEMENTS_URL}cost-summary/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total_cost"], "24.00")
        self.assertEqual(res.data["by_type"]["IN"]["movements"], 1)

    def test_cost_summary_rejects_bad_dates(self):
        self.client.force_authenticate(self.viewer)
        res = self.client.get(f"{MOVEMENTS_URL}cost-summary/", {"date_from": "yesterday"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
