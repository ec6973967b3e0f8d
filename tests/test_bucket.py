import pytest

from netweight.domain.models import Node
from netweight.scoring.aggregators import AggregatorFactory, MeanAgg, MinAgg
from netweight.scoring.composite import capacity_weight, price_weight
from netweight.topology.bucket import Bucket, TopologyError, parse_path

MEAN_AF = AggregatorFactory(new=MeanAgg)
MIN_AF = AggregatorFactory(new=MinAgg)


def _reference_tree() -> Bucket:
    b = Bucket(
        children=[
            Bucket(nodes=[Node.of(0, 1, 2), Node.of(2, 3, 2)]),
            Bucket(
                children=[
                    Bucket(nodes=[Node.of(1, 2, 3), Node.of(10, 6, 1)]),
                    Bucket(nodes=[Node.of(12, 3, 4), Node.of(2, 3, 4)]),
                ]
            ),
        ]
    )
    b.fill_nodes()
    return b


def test_parse_path_pairs():
    assert parse_path("/region:eu/rack:1") == [("region", "eu"), ("rack", "1")]
    assert parse_path("/") == []
    assert parse_path("") == []


@pytest.mark.parametrize(
    "path, message",
    [
        ("/region:eu//rack:1", "Empty segment"),
        ("/region", "key:value"),
        ("/:eu", "empty key or value"),
        ("/region:", "empty key or value"),
        ("/region:eu/region:us", "more than once"),
    ],
)
def test_add_bucket_rejects_malformed_paths(path, message):
    with pytest.raises(TopologyError, match=message):
        Bucket().add_bucket(path, [Node.of(1, 1, 1)])


def test_add_bucket_reuses_existing_children():
    root = Bucket()
    root.add_bucket("/region:eu/rack:1", [Node.of(1, 1, 1)])
    root.add_bucket("/region:eu/rack:2", [Node.of(2, 1, 1)])
    root.add_bucket("/region:eu/rack:1", [Node.of(3, 1, 1)])

    assert len(root.children) == 1
    eu = root.find("/region:eu")
    assert [c.name for c in eu.children] == ["rack:1", "rack:2"]
    assert [n.id for n in root.find("/region:eu/rack:1").nodes] == [1, 3]


def test_add_bucket_keeps_leaf_and_internal_groups_apart():
    root = Bucket()
    root.add_bucket("/region:eu", [Node.of(1, 1, 1)])

    with pytest.raises(TopologyError, match="below leaf group"):
        root.add_bucket("/region:eu/rack:1", [Node.of(2, 1, 1)])

    root.add_bucket("/region:us/rack:1", [Node.of(3, 1, 1)])
    with pytest.raises(TopologyError, match="internal bucket"):
        root.add_bucket("/region:us", [Node.of(4, 1, 1)])


def test_constructor_rejects_mixed_bucket():
    with pytest.raises(TopologyError):
        Bucket(nodes=[Node.of(1, 1, 1)], children=[Bucket()])


def test_fill_nodes_flattens_in_child_order():
    b = _reference_tree()
    assert [n.id for n in b.nodes] == [0, 2, 1, 10, 12, 2]
    assert [n.id for n in b.children[1].nodes] == [1, 10, 12, 2]


def test_fill_nodes_is_idempotent():
    b = _reference_tree()
    first = list(b.nodes)
    second_level = list(b.children[1].nodes)
    b.fill_nodes()
    assert b.nodes == first
    assert b.children[1].nodes == second_level


def test_flat_mean_matches_mean_of_all_leaves():
    b = _reference_tree()
    leaves = [1, 3, 2, 6, 3, 3]
    assert b.traverse(MeanAgg(), capacity_weight).compute() == pytest.approx(sum(leaves) / len(leaves))


def test_traverse_tree_mean_capacity_and_min_price():
    b = _reference_tree()

    b.traverse_tree(MEAN_AF, capacity_weight)
    assert b.children[0].weight == pytest.approx(2, rel=1e-3)
    assert b.children[1].weight == pytest.approx(3.5, rel=1e-3)
    assert b.children[1].children[0].weight == pytest.approx(4, rel=1e-3)
    assert b.children[1].children[1].weight == pytest.approx(3, rel=1e-3)

    b.traverse_tree(MIN_AF, price_weight)
    assert b.children[0].weight == pytest.approx(2, rel=1e-3)
    assert b.children[1].weight == pytest.approx(1, rel=1e-3)
    assert b.children[1].children[0].weight == pytest.approx(1, rel=1e-3)
    assert b.children[1].children[1].weight == pytest.approx(4, rel=1e-3)


def test_traverse_tree_rolls_up_children_not_leaves():
    b = _reference_tree()
    b.traverse_tree(MEAN_AF, capacity_weight)

    # Root is the mean of its children's weights (2 and 3.5), not of the six raw capacities (3).
    assert b.weight == pytest.approx(2.75)
    assert b.traverse(MeanAgg(), capacity_weight).compute() == pytest.approx(3.0)


def test_two_level_tree_parent_weight():
    root = Bucket()
    root.add_bucket("/rack:a", [Node.of(1, 1, 2), Node.of(2, 3, 2)])
    root.add_bucket("/rack:b", [Node.of(3, 2, 3), Node.of(4, 6, 1)])
    root.fill_nodes()

    root.traverse_tree(MEAN_AF, capacity_weight)
    assert root.find("/rack:a").weight == pytest.approx(2)
    assert root.find("/rack:b").weight == pytest.approx(4)
    assert root.weight == pytest.approx(3)


def test_traverse_tree_uses_a_fresh_aggregator_per_bucket():
    created = []

    def new():
        agg = MeanAgg()
        created.append(agg)
        return agg

    b = _reference_tree()
    b.traverse_tree(AggregatorFactory(new=new), capacity_weight)
    assert len(created) == len(list(b.walk()))
    assert len({id(a) for a in created}) == len(created)


def test_weight_is_undefined_before_traversal():
    assert Bucket().weight is None


def test_find_and_walk():
    root = Bucket()
    root.add_bucket("/region:eu/rack:1", [Node.of(1, 1, 1)])
    root.add_bucket("/region:us", [Node.of(2, 1, 1)])

    assert root.find("/") is root
    assert root.find("/region:eu/rack:2") is None
    assert [p for p, _ in root.walk()] == ["/", "/region:eu", "/region:eu/rack:1", "/region:us"]


def test_sorted_children_by_weight():
    root = Bucket()
    root.add_bucket("/rack:a", [Node.of(1, 1, 1)])
    root.add_bucket("/rack:b", [Node.of(2, 5, 1)])
    root.add_bucket("/rack:c", [Node.of(3, 1, 1)])
    root.fill_nodes()
    root.traverse_tree(MEAN_AF, capacity_weight)

    assert [c.value for c in root.sorted_children()] == ["b", "a", "c"]


def test_to_dict_shape():
    root = Bucket()
    root.add_bucket("/rack:a", [Node.of(7, 1, 1)])
    root.fill_nodes()
    root.traverse_tree(MEAN_AF, capacity_weight)

    data = root.to_dict()
    assert data["weight"] == pytest.approx(1.0)
    assert data["nodes"] == [7]
    assert data["children"][0]["key"] == "rack"
    assert data["children"][0]["value"] == "a"
