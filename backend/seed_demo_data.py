"""
Demo Seed Data Script

Creates realistic scan histories for three demo sites:
- Improving site (shop.example.com): fixes violations scan after scan
- Regressing site (blog.example.com): a redesign introduces new violations
- Stalled site (docs.example.com): the same violations persist

Scans go through ScanService with a scripted audit runner, so summaries
are computed exactly as for real audits.
"""

from datetime import timedelta
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from a11y_tracker.database import Base, SessionLocal, engine
from a11y_tracker.models import DecisionTrace, EvidenceBundle, IdempotencyKey, Scan
from a11y_tracker.models.base import utcnow
from a11y_tracker.services.audit_runner import AuditPayload
from a11y_tracker.services.scan_service import ScanService


RULES: Dict[str, Tuple[str, str]] = {
    "image-alt": ("Images must have alternate text", "critical"),
    "button-name": ("Buttons must have discernible text", "critical"),
    "color-contrast": ("Elements must meet minimum color contrast ratio thresholds", "serious"),
    "label": ("Form elements must have labels", "serious"),
    "link-name": ("Links must have discernible text", "serious"),
    "heading-order": ("Heading levels should only increase by one", "moderate"),
    "region": ("All page content should be contained by landmarks", "moderate"),
    "landmark-one-main": ("Document should have one main landmark", "moderate"),
    "meta-viewport": ("Zooming and scaling must not be disabled", "minor"),
}


class ScriptedRunner:
    """Audit runner that replays a fixed score and rule list."""

    def __init__(self, score: int, rule_ids: List[str]):
        self.score = score
        self.rule_ids = rule_ids

    def run(self, url: str, scan_type: str) -> AuditPayload:
        violations = []
        for rule_id in self.rule_ids:
            description, impact = RULES[rule_id]
            violations.append({
                "id": rule_id,
                "description": description,
                "impact": impact,
                "help": description,
                "nodes": [{"target": [f"#{rule_id}-node"]}],
            })
        return AuditPayload(
            lighthouse_results={"score": self.score, "categories": {}, "audits": {}},
            axe_results={"violations": violations, "passes": [], "incomplete": [], "inapplicable": []},
        )


def clear_all_data(db: Session):
    """Clear all existing data (for demo purposes only)"""
    print("Clearing existing data...")
    db.query(EvidenceBundle).delete()
    db.query(DecisionTrace).delete()
    db.query(IdempotencyKey).delete()
    db.query(Scan).delete()
    db.commit()
    print("✓ Data cleared")


def seed_history(db: Session, url: str, history: List[Tuple[int, List[str]]]):
    """
    Record one completed scan per (score, rule ids) entry, one week apart,
    ending today.
    """
    service = ScanService(db)
    start = utcnow() - timedelta(weeks=len(history) - 1)

    for week, (score, rule_ids) in enumerate(history):
        scan = service.create_scan(url=url, scan_type="both")
        scan.created_at = start + timedelta(weeks=week)
        db.commit()
        service.execute_audit(scan.id, ScriptedRunner(score, rule_ids))

    print(f"✓ {len(history)} scans for {url}")


def main():
    """Seed the configured database with demo scans"""
    print("="*60)
    print("Accessibility Scan Tracker - Demo Data Seeder")
    print("="*60)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        clear_all_data(db)

        seed_history(db, "https://shop.example.com", [
            (48, ["image-alt", "button-name", "color-contrast", "label", "region", "meta-viewport"]),
            (61, ["image-alt", "color-contrast", "label", "region"]),
            (74, ["color-contrast", "region"]),
            (92, ["region"]),
        ])
        seed_history(db, "https://blog.example.com", [
            (88, ["heading-order"]),
            (85, ["heading-order", "link-name"]),
            (63, ["heading-order", "link-name", "image-alt", "color-contrast", "landmark-one-main"]),
        ])
        seed_history(db, "https://docs.example.com", [
            (70, ["color-contrast", "link-name", "heading-order"]),
            (70, ["color-contrast", "link-name", "heading-order"]),
            (71, ["link-name", "color-contrast", "heading-order"]),
        ])

        print("\n" + "="*60)
        print("✓ Demo data successfully seeded!")
        print("="*60)
        print("\nNext Steps:")
        print("  - Start the API: python -m a11y_tracker.main")
        print("  - GET /api/comparisons/timeline?url=https://shop.example.com")
        print("  - GET /api/reports/top-violations")
        print("="*60)

    except Exception as e:
        print(f"\n❌ Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == '__main__':
    main()
