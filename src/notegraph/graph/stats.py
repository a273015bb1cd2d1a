"""Summary statistics over the built note graph."""

import networkx as nx

from notegraph.model import Graph, Note


def to_networkx(graph: Graph) -> nx.DiGraph:
    """Convert the model to a DiGraph keyed by note id.

    When an explicit and an implicit edge share a direction, the explicit
    one wins; reverse-direction duplicates stay as separate arcs.
    """
    g = nx.DiGraph()
    for n in graph.nodes:
        g.add_node(n.id, title=n.title, category=n.category)
    for e in graph.edges:
        if g.has_edge(e.source, e.target) and not e.explicit:
            continue
        g.add_edge(e.source, e.target,
                   strength=e.strength, explicit=e.explicit)
    return g


def graph_stats(notes: list[Note], graph: Graph) -> dict:
    """Count notes, edges, linked notes, tags, isolates and components."""
    g = to_networkx(graph)
    explicit = sum(1 for e in graph.edges if e.explicit)
    unique_tags = {t for n in notes for t in n.tags}
    return {
        'notes': len(notes),
        'edges': len(graph.edges),
        'explicit_edges': explicit,
        'implicit_edges': len(graph.edges) - explicit,
        'connected_notes': sum(1 for n in notes if n.connections),
        'connections_created': sum(len(n.connections) for n in notes),
        'unique_tags': len(unique_tags),
        'isolated_notes': sorted(nx.isolates(g)),
        'components': (nx.number_weakly_connected_components(g)
                       if len(g) else 0),
        }
