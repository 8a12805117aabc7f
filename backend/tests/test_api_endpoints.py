API = "/api/v1"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# ==================== 分类 ====================

class TestCategories:
    def test_list_and_detail(self, client, demo):
        response = client.get(f"{API}/categories/", params={"is_pc_component": True})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 8
        assert [c["slug"] for c in body["data"]][:3] == ["cpu", "motherboard", "memory"]

        cpu = client.get(f"{API}/categories/{demo['categories']['cpu']}").json()
        assert cpu["template_count"] == 5
        assert cpu["effective_component_type"] == "cpu"

    def test_subcategory_inherits_component_type(self, client, demo):
        cpu_id = demo["categories"]["cpu"]
        response = client.post(f"{API}/categories/", json={"name": "AMD 处理器", "slug": "amd-cpu", "parent_id": cpu_id})
        assert response.status_code == 200
        created = response.json()
        assert created["level"] == 2
        assert created["parent_name"] == "处理器"
        assert created["pc_component_type"] is None
        assert created["effective_component_type"] == "cpu"

        tree = client.get(f"{API}/categories/tree").json()
        cpu_node = next(n for n in tree if n["slug"] == "cpu")
        assert [c["slug"] for c in cpu_node["children"]] == ["amd-cpu"]

    def test_duplicate_slug_and_delete_guards(self, client, demo):
        duplicate = client.post(f"{API}/categories/", json={"name": "处理器2", "slug": "cpu"})
        assert duplicate.status_code == 400

        in_use = client.delete(f"{API}/categories/{demo['categories']['cpu']}")
        assert in_use.status_code == 400

        empty = client.delete(f"{API}/categories/{demo['categories']['storage']}")
        assert empty.status_code == 200
        assert client.get(f"{API}/categories/{demo['categories']['storage']}").status_code == 404

    def test_templates_in_display_order(self, client, demo):
        response = client.get(f"{API}/categories/{demo['categories']['motherboard']}/templates")
        assert [t["name"] for t in response.json()] == ["brand", "socket", "chipset", "memory_type", "form_factor"]
        assert client.get(f"{API}/categories/999/templates").status_code == 404


# ==================== 模板 ====================

class TestTemplates:
    def test_create_with_auto_fill(self, client, demo):
        response = client.post(f"{API}/templates/", json={
            "category_id": demo["categories"]["cooling"],
            "name": "socket",
            "display_name": "支持插槽",
            "data_type": "socket",
            "enum_source": "SOCKET_TYPE",
            "auto_fill_enum_values": True,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["is_valid"] is True
        assert body["template"]["enum_values"] == ["AM4", "AM5", "LGA1700", "LGA1200", "LGA1151", "LGA2066"]
        assert body["template"]["category_name"] == "散热器"

    def test_invalid_definition_is_rejected(self, client, demo):
        response = client.post(f"{API}/templates/", json={
            "category_id": demo["categories"]["cooling"],
            "name": "socket",
            "display_name": "支持插槽",
            "data_type": "socket",
        })
        assert response.status_code == 400
        assert response.json()["detail"]["errors"]

    def test_duplicate_name_in_category(self, client, demo):
        response = client.post(f"{API}/templates/", json={
            "category_id": demo["categories"]["cpu"],
            "name": "brand",
            "display_name": "品牌",
            "data_type": "text",
        })
        assert response.status_code == 400

    def test_validate_only(self, client):
        response = client.post(f"{API}/templates/validate", json={
            "name": "memory_type",
            "display_name": "内存类型",
            "data_type": "memory_type",
            "enum_source": "MEMORY_TYPE",
            "enum_values": ["DDR3"],
        })
        assert response.status_code == 200
        assert response.json()["is_valid"] is False

    def test_update_revalidates(self, client, demo):
        template_id = demo["templates"][("memory", "memory_type")]
        bad = client.put(f"{API}/templates/{template_id}", json={"enum_values": ["DDR3"]})
        assert bad.status_code == 400

        good = client.put(f"{API}/templates/{template_id}", json={"enum_values": ["DDR5"]})
        assert good.status_code == 200
        assert good.json()["template"]["enum_values"] == ["DDR5"]

    def test_recommended_and_autocomplete(self, client, demo):
        recommended = client.get(f"{API}/templates/recommended/chipset").json()
        assert recommended["enum_source"] == "CHIPSET_TYPE"

        template_id = demo["templates"][("motherboard", "memory_type")]
        values = client.get(f"{API}/templates/{template_id}/autocomplete").json()["values"]
        assert values == ["DDR4", "DDR5"]

    def test_data_type_change_blocked_while_values_exist(self, client, demo):
        socket_id = demo["templates"][("cpu", "socket")]
        response = client.put(f"{API}/templates/{socket_id}", json={"data_type": "number", "enum_source": None})
        assert response.status_code == 400
        assert client.get(f"{API}/templates/{socket_id}").json()["data_type"] == "socket"

        specs = client.get(f"{API}/products/{demo['products']['ryzen-5-5600x']}/specifications").json()
        socket = next(s for s in specs if s["name"] == "socket")
        assert socket["typed_value"] == {"kind": "enum", "value": "AM4"}

        unused = client.post(f"{API}/templates/", json={
            "category_id": demo["categories"]["storage"],
            "name": "rpm",
            "display_name": "转速",
            "data_type": "text",
        }).json()["template"]["id"]
        changed = client.put(f"{API}/templates/{unused}", json={"data_type": "number"})
        assert changed.status_code == 200
        assert changed.json()["template"]["data_type"] == "number"

    def test_delete_referenced_template(self, client, demo):
        referenced = demo["templates"][("cpu", "socket")]
        assert client.delete(f"{API}/templates/{referenced}").status_code == 400

        unused = client.post(f"{API}/templates/", json={
            "category_id": demo["categories"]["storage"],
            "name": "interface",
            "display_name": "接口",
            "data_type": "enum",
            "enum_values": ["SATA", "NVMe"],
        }).json()["template"]["id"]
        assert client.delete(f"{API}/templates/{unused}").status_code == 200
        assert client.get(f"{API}/templates/{unused}").status_code == 404


# ==================== 规则 ====================

class TestRules:
    def test_list_by_category(self, client, demo):
        body = client.get(f"{API}/rules/", params={"category_id": demo["categories"]["gpu"]}).json()
        assert body["total"] == 1
        assert body["data"][0]["rule_type"] == "range"
        assert body["data"][0]["secondary_template_name"] == "wattage"

    def test_create_update_delete(self, client, demo):
        payload = {
            "name": "散热器支持插槽",
            "primary_category_id": demo["categories"]["cpu"],
            "primary_specification_template_id": demo["templates"][("cpu", "socket")],
            "secondary_category_id": demo["categories"]["motherboard"],
            "secondary_specification_template_id": demo["templates"][("motherboard", "socket")],
            "rule_type": "exact_match",
            "level": "warning",
        }
        created = client.post(f"{API}/rules/", json=payload)
        assert created.status_code == 200
        rule_id = created.json()["id"]

        updated = client.put(f"{API}/rules/{rule_id}", json={"is_active": False})
        assert updated.status_code == 200
        assert updated.json()["is_active"] is False

        assert client.delete(f"{API}/rules/{rule_id}").status_code == 200
        assert client.get(f"{API}/rules/{rule_id}").status_code == 404

    def test_value_sets_are_stored_canonical(self, client, demo):
        payload = {
            "name": "插槽与芯片组",
            "primary_category_id": demo["categories"]["motherboard"],
            "primary_specification_template_id": demo["templates"][("motherboard", "socket")],
            "secondary_category_id": demo["categories"]["motherboard"],
            "secondary_specification_template_id": demo["templates"][("motherboard", "chipset")],
            "rule_type": "value_set",
            "value_sets": {"am4": ["b550"]},
        }
        created = client.post(f"{API}/rules/", json=payload)
        assert created.status_code == 200
        assert created.json()["value_sets"] == {"AM4": ["B550"]}

        unknown = client.post(f"{API}/rules/", json={**payload, "value_sets": {"am4": ["b999"]}})
        assert unknown.status_code == 400

        rule_id = created.json()["id"]
        updated = client.put(f"{API}/rules/{rule_id}", json={"value_sets": {"lga 1700": ["z790"]}})
        assert updated.status_code == 200
        assert updated.json()["value_sets"] == {"LGA1700": ["Z790"]}

    def test_power_budget_rule_lists_terms(self, client, demo):
        body = client.get(f"{API}/rules/", params={"category_id": demo["categories"]["psu"]}).json()
        budget = [r for r in body["data"] if r["rule_type"] == "sum_range"]
        assert [r["level"] for r in budget] == ["error", "warning"]
        assert budget[0]["primary_template_name"] == "tdp"
        assert {"category_id": demo["categories"]["gpu"],
                "template_id": demo["templates"][("gpu", "power_consumption")],
                "constant": 150.0} in budget[0]["sum_terms"]

    def test_template_outside_category_is_rejected(self, client, demo):
        response = client.post(f"{API}/rules/", json={
            "name": "错误规则",
            "primary_category_id": demo["categories"]["cpu"],
            "primary_specification_template_id": demo["templates"][("motherboard", "socket")],
            "secondary_category_id": demo["categories"]["motherboard"],
            "secondary_specification_template_id": demo["templates"][("motherboard", "socket")],
            "rule_type": "exact_match",
        })
        assert response.status_code == 400


# ==================== 商品 ====================

class TestProducts:
    def _payload(self, demo, **specifications):
        return {
            "name": "ASRock B650M",
            "slug": "asrock-b650m",
            "category_id": demo["categories"]["motherboard"],
            "price": "899",
            "specifications": specifications,
        }

    def test_create_product(self, client, demo):
        response = client.post(f"{API}/products/", json=self._payload(
            demo, brand="ASRock", socket="AM5", chipset="B650", memory_type="DDR5", form_factor="mATX",
        ))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["specifications_created"] == 5

        product = client.get(f"{API}/products/{body['product_id']}").json()
        form = next(s for s in product["specifications"] if s["name"] == "form_factor")
        assert form["value"] == "Micro ATX"
        assert form["typed_value"] == {"kind": "enum", "value": "Micro ATX"}

    def test_create_product_with_invalid_specs(self, client, demo):
        response = client.post(f"{API}/products/", json=self._payload(
            demo, brand="ASRock", socket="AM5", chipset="B550", memory_type="DDR5",
        ))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["code"] == "rule_violation"
        assert client.get(f"{API}/products/", params={"search": "ASRock"}).json()["total"] == 0

    def test_update_and_read_specifications(self, client, demo):
        product_id = demo["products"]["rm750"]
        response = client.put(f"{API}/products/{product_id}/specifications", json={
            "specifications": {"brand": "Corsair", "wattage": "850 W", "modular": False},
        })
        assert response.status_code == 200

        specs = client.get(f"{API}/products/{product_id}/specifications").json()
        assert [s["name"] for s in specs] == ["brand", "wattage", "modular"]
        assert specs[1]["typed_value"] == {"kind": "number", "value": 850.0, "unit": "W"}
        assert specs[2]["value"] == "false"

        assert client.get(f"{API}/products/999/specifications").status_code == 404

    def test_bulk_specifications(self, client, demo):
        response = client.post(f"{API}/products/bulk-specifications", json={
            "template_id": demo["templates"][("psu", "modular")],
            "product_ids": [demo["products"]["focus-550"], demo["products"]["rm750"], demo["products"]["rtx-4070"]],
            "value": "false",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success_count"] == 2
        assert body["error_count"] == 1
        assert body["errors"][0]["product_id"] == demo["products"]["rtx-4070"]


# ==================== 兼容性 ====================

class TestCompatibility:
    def test_compatible_build(self, client, demo):
        products = demo["products"]
        response = client.post(f"{API}/compatibility/check", json={"product_ids": [
            products["ryzen-5-5600x"], products["msi-b550-tomahawk"], products["fury-16gb-ddr4"],
        ]})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "valid"
        assert body["rules_checked"] == 3
        assert body["rules_passed"] == 3

    def test_socket_mismatch(self, client, demo):
        products = demo["products"]
        body = client.post(f"{API}/compatibility/check", json={"product_ids": [
            products["core-i5-13600k"], products["msi-b550-tomahawk"],
        ]}).json()
        assert body["status"] == "error"
        assert body["issues"][0]["severity"] == "critical"
        assert body["issues"][0]["component1"] == "Intel Core i5-13600K"

    def test_underpowered_psu_and_form_factor_warning(self, client, demo):
        products = demo["products"]
        psu = client.post(f"{API}/compatibility/check", json={"product_ids": [
            products["rtx-4070"], products["focus-550"],
        ]}).json()
        assert psu["status"] == "error"

        case = client.post(f"{API}/compatibility/check", json={"product_ids": [
            products["msi-b550-tomahawk"], products["pop-mini"],
        ]}).json()
        assert case["status"] == "warning"

    def test_case_takes_smaller_boards(self, client, demo):
        products = demo["products"]
        body = client.post(f"{API}/compatibility/check", json={"product_ids": [
            products["msi-b550-tomahawk"], products["lancool-216"],
        ]}).json()
        assert body["status"] == "valid"

    def test_power_budget_headroom_warning(self, client, demo):
        psu = client.post(f"{API}/products/", json={
            "name": "Budget 380W",
            "slug": "budget-380",
            "category_id": demo["categories"]["psu"],
            "price": "199",
            "specifications": {"brand": "Generic", "wattage": "380W"},
        }).json()
        products = demo["products"]
        # 处理器 125 + 显卡 200 + 主板 30 + 内存 5 = 360 W，余量要求 432 W
        body = client.post(f"{API}/compatibility/check", json={"product_ids": [
            products["core-i5-13600k"], products["asus-z790-p"], products["vengeance-32gb-ddr5"],
            products["rtx-4070"], psu["product_id"],
        ]}).json()
        levels = {i["message"]: i["level"] for i in body["issues"]}
        assert [level for message, level in levels.items() if "电源功率预留 20% 余量" in message] == ["warning"]
        assert not any("电源功率满足整机功耗" in message for message in levels)

    def test_unknown_product(self, client, demo):
        response = client.post(f"{API}/compatibility/check", json={"product_ids": [999]})
        assert response.status_code == 404

    def test_compatible_products(self, client, demo):
        response = client.post(f"{API}/compatibility/compatible-products", json={
            "product_ids": [demo["products"]["ryzen-5-5600x"]],
            "target_category_id": demo["categories"]["motherboard"],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["total_candidates"] == 2
        assert [c["product_id"] for c in body["compatible"]] == [demo["products"]["msi-b550-tomahawk"]]

        psus = client.post(f"{API}/compatibility/compatible-products", json={
            "product_ids": [demo["products"]["rtx-4070"]],
            "target_category_id": demo["categories"]["psu"],
        }).json()
        assert [c["name"] for c in psus["compatible"]] == ["Corsair RM750"]


# ==================== 统计与枚举 ====================

def test_analytics_report(client, demo):
    response = client.get(f"{API}/analytics/categories/{demo['categories']['gpu']}")
    assert response.status_code == 200
    assert response.json()["stats"]["completion_rate"] == 100.0
    assert client.get(f"{API}/analytics/categories/999").status_code == 404


def test_enums(client):
    sources = client.get(f"{API}/enums/").json()
    assert sources["MEMORY_TYPE"]["values"] == ["DDR4", "DDR5"]

    socket = client.get(f"{API}/enums/SOCKET_TYPE").json()
    assert socket["aliases"]["LGA 1700"] == "LGA1700"
    assert client.get(f"{API}/enums/NOPE").status_code == 404
