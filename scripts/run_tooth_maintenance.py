"""
Ejecuta una vez los barridos de mantenimiento del odontograma.

Uso:
    python scripts/run_tooth_maintenance.py linkages
    python scripts/run_tooth_maintenance.py audit --patient <patient_id>
    python scripts/run_tooth_maintenance.py all --limit 200

Ambos barridos son idempotentes: se pueden repetir sin riesgo.
"""

import argparse
import logging
import sys
from pathlib import Path
from uuid import UUID

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio  # noqa: E402

from app.config import get_settings  # noqa: E402
from app.database import async_session_factory  # noqa: E402
from app.services.maintenance_service import run_linkage_repair, run_tooth_audit  # noqa: E402


async def run(command: str, patient_id: UUID | None, limit: int | None) -> None:
    async with async_session_factory() as db:
        if command in ("linkages", "all"):
            report = await run_linkage_repair(db, patient_id=patient_id, limit=limit)
            print(f"Tratamientos revisados: {report.scanned}")
            print(f"  Vinculados: {report.linked} (vínculos cita-diente nuevos: {report.links_created})")
            print(f"  Sin coincidencia: {report.unmatched}")
            print(f"  Omitidos (consultas): {report.skipped}")
            print(f"  Dientes actualizados: {report.statuses_updated}")
            for error in report.errors:
                print(f"  ERROR {error.record_id}: {error.error}")

        if command in ("audit", "all"):
            report = await run_tooth_audit(db, patient_id=patient_id)
            print(f"Diagnósticos revisados: {report.total_checked}")
            print(f"  Colores corregidos: {report.color_fixes}")
            print(f"  Descartados (cambiaron durante la auditoría): {report.superseded}")
            for fix in report.fixed_records:
                print(f"    Diente #{fix.tooth_number} [{fix.status.value}]: {fix.old_color} → {fix.new_color}")
            print(f"  Discrepancias tratamiento/estado: {len(report.treatment_mismatches)}")
            for mismatch in report.treatment_mismatches:
                print(
                    f"    Diente #{mismatch.tooth_number}: '{mismatch.recommended_treatment}' "
                    f"({mismatch.current_status.value} → {mismatch.expected_status.value}?)"
                )
            for error in report.errors:
                print(f"  ERROR {error.record_id}: {error.error}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Mantenimiento del odontograma")
    parser.add_argument("command", choices=["linkages", "audit", "all"])
    parser.add_argument("--patient", type=UUID, default=None, help="UUID del paciente")
    parser.add_argument("--limit", type=int, default=None, help="Tratamientos por página (todas las páginas se recorren)")
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().LOG_LEVEL)
    asyncio.run(run(args.command, args.patient, args.limit))
