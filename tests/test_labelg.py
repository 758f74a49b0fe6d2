import itertools

import networkx as nx
import pytest

from isofilter.canon.canonicalizer import CanonConfig, make_canonicalizer
from isofilter.canon.invariants import InvariantSpec
from isofilter.errors import ConfigurationError
from isofilter.external.nauty import NAUTY_LABELG, labelg_args, labelg_available
from isofilter.io.graph6 import DIGRAPH6, GRAPH6, SPARSE6


def test_labelg_args_plain():
    assert labelg_args(GRAPH6) == [NAUTY_LABELG, "-q", "-g"]


def test_labelg_args_options():
    args = labelg_args(
        SPARSE6,
        mode="sparse",
        partition="-ab",
        invariant=InvariantSpec(kind=8, min_level=0, max_level=2, arg=4),
    )
    assert args == [NAUTY_LABELG, "-q", "-s", "-S", "-f-ab", "-i8", "-I0:2", "-K4"]


def test_labelg_args_traces_digraph6():
    assert labelg_args(DIGRAPH6, mode="traces")[2:] == ["-z", "-t"]


@pytest.mark.skipif(labelg_available(), reason="labelg is installed")
def test_nauty_backend_needs_labelg():
    with pytest.raises(ConfigurationError):
        make_canonicalizer(CanonConfig(backend="nauty"))


@pytest.mark.skipif(not labelg_available(), reason="nauty labelg not found")
def test_labelg_forms_agree_across_labellings():
    canon = make_canonicalizer(CanonConfig(backend="nauty"))
    G = nx.Graph([(0, 1), (1, 2), (2, 3), (3, 0), (0, 2)])
    forms = set()
    for perm in itertools.permutations(range(4)):
        H = nx.relabel_nodes(G, dict(zip(range(4), perm)))
        H = nx.convert_node_labels_to_integers(H, ordering="sorted")
        forms.add(canon.canonical_form(H, GRAPH6))
    assert len(forms) == 1
    C4 = nx.cycle_graph(4)
    assert canon.canonical_form(C4, GRAPH6) not in forms
