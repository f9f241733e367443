"""Technology definitions and tree construction."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

from ...hoiformat.parser import Node
from ...hoiformat.parser import collect_variables


@dataclass
class TechnologyFolder:
    name: str
    x: float
    y: float


@dataclass
class Technology:
    id: str
    folders: dict[str, TechnologyFolder] = field(default_factory=dict)
    leads_to_techs: list[str] = field(default_factory=list)
    xor: list[str] = field(default_factory=list)
    start_year: int = 0
    enable_equipments: bool = False
    sub_technologies: list[str] = field(default_factory=list)
    start: int = 0
    end: int = 0


@dataclass
class TechnologyTree:
    start_technology: str
    folder: str
    technologies: list[Technology] = field(default_factory=list)


def get_technologies(root: Node) -> list[Technology]:
    """Technologies of every ``technologies = { ... }`` block, in file order."""
    variables = collect_variables(root)
    technologies = []
    for block in root.find_all("technologies"):
        for node in block.children:
            if node.name is None or node.name.startswith("@") or not node.is_block:
                continue
            technologies.append(_technology(node, variables))
    return technologies


def _technology(node: Node, variables: dict[str, float]) -> Technology:
    folders = {}
    for folder in node.find_all("folder"):
        name = folder.string("name")
        if not name:
            continue
        position = folder.find("position")
        x = position.number("x", 0, variables) if position else 0
        y = position.number("y", 0, variables) if position else 0
        folders[name] = TechnologyFolder(name=name, x=x or 0, y=y or 0)

    leads_to = [path.string("leads_to_tech") for path in node.find_all("path")]
    xor = [value for xor_node in node.find_all("xor") for value in xor_node.bare_values()]
    sub = [value for sub_node in node.find_all("sub_technologies") for value in sub_node.bare_values()]
    equipments = node.find("enable_equipments")

    return Technology(
        id=node.name,
        folders=folders,
        leads_to_techs=[tech for tech in leads_to if tech],
        xor=xor,
        start_year=int(node.number("start_year", 0, variables) or 0),
        enable_equipments=equipments is not None and bool(equipments.bare_values()),
        sub_technologies=sub,
        start=node.start,
        end=node.end,
    )


def get_technology_trees(root: Node) -> list[TechnologyTree]:
    """Group technologies into trees per folder.

    A tree starts at a technology no other technology in the same folder
    leads to, and contains everything reachable through ``leads_to_tech``
    inside that folder.
    """
    technologies = get_technologies(root)
    by_id = {tech.id: tech for tech in technologies}
    folders = list(dict.fromkeys(folder for tech in technologies for folder in tech.folders))

    trees = []
    for folder in folders:
        in_folder = [tech for tech in technologies if folder in tech.folders]
        targets = {child for tech in in_folder for child in tech.leads_to_techs}
        for root_tech in (tech for tech in in_folder if tech.id not in targets):
            trees.append(
                TechnologyTree(
                    start_technology=root_tech.id,
                    folder=folder,
                    technologies=_reachable(root_tech, folder, by_id),
                )
            )
    return trees


def _reachable(start: Technology, folder: str, by_id: dict[str, Technology]) -> list[Technology]:
    seen = {start.id}
    ordered = [start]
    queue = [start]
    while queue:
        tech = queue.pop(0)
        for child_id in tech.leads_to_techs:
            child = by_id.get(child_id)
            if child is None or child.id in seen or folder not in child.folders:
                continue
            seen.add(child.id)
            ordered.append(child)
            queue.append(child)
    return ordered
