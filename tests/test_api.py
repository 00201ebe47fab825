"""
Tests de los endpoints de odontograma, tratamientos y mantenimiento.
"""

from uuid import uuid4

from httpx import AsyncClient

API = "/api/v1"


async def _save_diagnosis(client: AsyncClient, **payload) -> dict:
    response = await client.post(f"{API}/tooth-diagnoses", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestToothDiagnoses:
    async def test_status_inferred_from_diagnosis(self, client: AsyncClient):
        data = await _save_diagnosis(
            client,
            patient_id=str(uuid4()),
            tooth_number="36",
            primary_diagnosis="Deep caries on distal surface",
            recommended_treatment="Composite filling",
        )

        assert data["status"] == "caries"
        assert data["color_code"] == "#ef4444"
        assert data["follow_up_required"] is True

    async def test_declared_status_wins(self, client: AsyncClient):
        data = await _save_diagnosis(
            client,
            patient_id=str(uuid4()),
            tooth_number="11",
            status="crown",
            recommended_treatment="Composite filling",
        )

        assert data["status"] == "crown"
        assert data["color_code"] == "#eab308"

    async def test_same_consultation_updates_in_place(self, client: AsyncClient):
        patient_id, consultation_id = str(uuid4()), str(uuid4())
        first = await _save_diagnosis(
            client,
            patient_id=patient_id,
            consultation_id=consultation_id,
            tooth_number="21",
            status="caries",
        )
        second = await _save_diagnosis(
            client,
            patient_id=patient_id,
            consultation_id=consultation_id,
            tooth_number="21",
            status="healthy",
        )

        assert second["id"] == first["id"]
        history = await client.get(f"{API}/tooth-diagnoses/patient/{patient_id}/tooth/21")
        assert len(history.json()) == 1
        assert history.json()[0]["status"] == "healthy"

    async def test_invalid_tooth_number(self, client: AsyncClient):
        response = await client.post(
            f"{API}/tooth-diagnoses",
            json={"patient_id": str(uuid4()), "tooth_number": "19", "status": "healthy"},
        )
        assert response.status_code == 422

        response = await client.get(f"{API}/tooth-diagnoses/patient/{uuid4()}/tooth/99")
        assert response.status_code == 422

    async def test_full_chart_and_stats(self, client: AsyncClient):
        patient_id = str(uuid4())
        await _save_diagnosis(client, patient_id=patient_id, tooth_number="36", status="caries")
        await _save_diagnosis(client, patient_id=patient_id, tooth_number="11", status="filled")
        await _save_diagnosis(client, patient_id=patient_id, tooth_number="48", status="missing")

        chart = await client.get(f"{API}/tooth-diagnoses/patient/{patient_id}")
        assert chart.status_code == 200
        teeth = {tooth["tooth_number"]: tooth for tooth in chart.json()["teeth"]}
        assert set(teeth) == {"11", "36", "48"}
        assert teeth["36"]["needs_attention"] is True
        assert teeth["11"]["color_code"] == "#3b82f6"

        stats = await client.get(f"{API}/tooth-diagnoses/patient/{patient_id}/stats")
        assert stats.json()["caries"] == 1
        assert stats.json()["restorations"] == 1
        assert stats.json()["missing"] == 1
        assert stats.json()["total"] == 3

    async def test_empty_chart_is_not_found(self, client: AsyncClient):
        response = await client.get(f"{API}/tooth-diagnoses/patient/{uuid4()}")
        assert response.status_code == 404


class TestTreatments:
    async def test_completion_updates_tooth(self, client: AsyncClient):
        patient_id = str(uuid4())
        await _save_diagnosis(client, patient_id=patient_id, tooth_number="36", status="caries")

        created = await client.post(
            f"{API}/treatments",
            json={
                "patient_id": patient_id,
                "treatment_type": "Composite Filling",
                "tooth_number": "36",
                "appointment_id": str(uuid4()),
            },
        )
        assert created.status_code == 201, created.text
        treatment_id = created.json()["id"]
        assert created.json()["status"] == "scheduled"

        response = await client.patch(
            f"{API}/treatments/{treatment_id}/status", json={"status": "completed"}
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "completed"
        assert body["tooth"]["status"] == "filled"
        assert body["tooth"]["color_code"] == "#3b82f6"
        assert body["tooth"]["follow_up_required"] is False

    async def test_unclassifiable_completion_keeps_tooth(self, client: AsyncClient):
        patient_id = str(uuid4())
        await _save_diagnosis(client, patient_id=patient_id, tooth_number="21", status="caries")
        created = await client.post(
            f"{API}/treatments",
            json={"patient_id": patient_id, "treatment_type": "Routine Chat", "tooth_number": "21"},
        )

        response = await client.patch(
            f"{API}/treatments/{created.json()['id']}/status", json={"status": "completed"}
        )

        assert response.json()["tooth"]["status"] == "caries"

    async def test_invalid_transition(self, client: AsyncClient):
        created = await client.post(
            f"{API}/treatments",
            json={"patient_id": str(uuid4()), "treatment_type": "Extraction"},
        )
        treatment_id = created.json()["id"]

        cancel = await client.patch(
            f"{API}/treatments/{treatment_id}/status", json={"status": "cancelled"}
        )
        assert cancel.status_code == 200

        response = await client.patch(
            f"{API}/treatments/{treatment_id}/status", json={"status": "in_progress"}
        )
        assert response.status_code == 422

    async def test_unknown_treatment(self, client: AsyncClient):
        response = await client.patch(
            f"{API}/treatments/{uuid4()}/status", json={"status": "completed"}
        )
        assert response.status_code == 404


class TestMaintenance:
    async def test_repair_then_audit(self, client: AsyncClient):
        patient_id, consultation_id = str(uuid4()), str(uuid4())
        await _save_diagnosis(
            client,
            patient_id=patient_id,
            consultation_id=consultation_id,
            tooth_number="48",
            status="attention",
            recommended_treatment="Root canal therapy",
        )
        created = await client.post(
            f"{API}/treatments",
            json={
                "patient_id": patient_id,
                "consultation_id": consultation_id,
                "treatment_type": "Root Canal Treatment",
            },
        )
        await client.patch(
            f"{API}/treatments/{created.json()['id']}/status", json={"status": "completed"}
        )

        repair = await client.post(
            f"{API}/maintenance/repair-linkages", params={"patient_id": patient_id}
        )
        assert repair.status_code == 200
        assert repair.json()["linked"] == 1
        assert repair.json()["statuses_updated"] == 1

        chart = await client.get(f"{API}/tooth-diagnoses/patient/{patient_id}")
        [tooth] = chart.json()["teeth"]
        assert tooth["status"] == "root_canal"
        assert tooth["color_code"] == "#8b5cf6"

        audit = await client.post(
            f"{API}/maintenance/audit-colors", params={"patient_id": patient_id}
        )
        assert audit.status_code == 200
        assert audit.json()["color_fixes"] == 0
        assert audit.json()["total_checked"] == 1
