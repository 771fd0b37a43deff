"""Built-in billing templates.

Time estimates are in hours, billed in tenth-hour steps.
"""

from __future__ import annotations

from .types import TemplateGroup, TemplateItem


def _group(id: str, name: str, description: str, category: str,
           *items: tuple[float, str]) -> TemplateGroup:
    return TemplateGroup(
        id=id,
        name=name,
        description=description,
        category=category,
        items=tuple(TemplateItem(time, desc) for time, desc in items),
    )


DEFAULT_CATALOG: tuple[TemplateGroup, ...] = (
    _group(
        "discovery", "Discovery",
        "Written discovery requests, responses and document review",
        "discovery",
        (0.5, "Review and analyze discovery documents received from opposing party"),
        (1.2, "Draft responses to plaintiff's first set of interrogatories"),
        (0.8, "Review document production for privilege and prepare privilege log"),
        (1.0, "Draft meet-and-confer letter regarding deficient discovery responses"),
    ),
    _group(
        "litigation-general", "Litigation General",
        "General litigation work including case strategy and client communication",
        "litigation",
        (0.3, "Telephone conference with client regarding case status and strategy"),
        (1.0, "Review case file and prepare for upcoming deadlines"),
        (0.4, "Draft status report to client regarding litigation developments"),
        (0.2, "Review and calendar court scheduling order"),
    ),
    _group(
        "motion-practice", "Motion Practice",
        "Draft and file motion with supporting memorandum of law",
        "motions",
        (2.0, "Draft motion with supporting memorandum of law"),
        (1.5, "Conduct legal research for motion to dismiss"),
        (1.2, "Review and analyze opposing party's motion and supporting authorities"),
        (1.0, "Draft reply brief in support of motion for summary judgment"),
        (0.6, "Prepare for and attend hearing on motion"),
    ),
    _group(
        "protective-order", "Protective Order",
        "Draft protective order to safeguard confidential information",
        "discovery",
        (1.5, "Draft protective order to safeguard confidential information"),
        (0.8, "Confer with opposing counsel regarding terms of stipulated protective order"),
        (1.0, "Draft motion for protective order limiting scope of discovery"),
    ),
    _group(
        "protective-order-expanded", "Protective Order (Expanded)",
        "Draft comprehensive protective order with detailed confidentiality provisions",
        "discovery",
        (3.0, "Draft comprehensive protective order with detailed confidentiality provisions"),
        (1.2, "Revise protective order to address attorneys'-eyes-only designations"),
        (0.7, "Review and analyze opposing counsel's proposed revisions to protective order"),
    ),
    _group(
        "subpoena-deposition", "Subpoena Deposition",
        "Prepare and serve subpoena for deposition testimony",
        "depositions",
        (1.0, "Prepare and serve subpoena for deposition testimony"),
        (1.5, "Draft deposition outline for examination of key witness"),
        (0.4, "Coordinate scheduling of deposition with court reporter and opposing counsel"),
        (2.0, "Review and summarize deposition transcript"),
    ),
    _group(
        "client-communication", "Client Communication",
        "Routine correspondence and calls with the client and opposing counsel",
        "general",
        (0.2, "Prepare correspondence to client enclosing pleadings"),
        (0.3, "Telephone conference with opposing counsel regarding scheduling"),
        (0.1, "Review and respond to email from client"),
    ),
)
