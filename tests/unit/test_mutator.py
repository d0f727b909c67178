"""Tests for structural tree edits."""

from randomitas.core.tree import mutator
from randomitas.core.tree.paths import count_nodes, find, find_path, iter_nodes
from randomitas.models.failure import Failure, FailureKind
from randomitas.models.node import Folder, Tree
from tests.unit.fakes import EPOCH, make


def _names(nodes: tuple[Folder, ...]) -> list[str]:
    return [n.name for n in nodes]


def _ids(node: Folder) -> set[str]:
    ids = {node.id}
    for child in node.children:
        ids |= _ids(child)
    return ids


def _shape(node: Folder) -> tuple[str, tuple]:
    return node.name, tuple(_shape(c) for c in node.children)


def test_insert_appends_to_root_and_folder() -> None:
    tree = mutator.insert(Tree(), (), make("A"))
    assert isinstance(tree, Tree)
    tree = mutator.insert(tree, (0,), make("B"))
    assert isinstance(tree, Tree)
    tree = mutator.insert(tree, (0,), make("C"))
    assert isinstance(tree, Tree)
    assert _names(tree.roots[0].children) == ["B", "C"]


def test_insert_into_missing_parent_fails(sample_tree: Tree) -> None:
    result = mutator.insert(sample_tree, (5, 0), make("X"))
    assert isinstance(result, Failure)
    assert result.kind == FailureKind.PATH_NOT_FOUND


def test_insert_leaves_original_untouched(sample_tree: Tree) -> None:
    before = count_nodes(sample_tree)
    result = mutator.insert(sample_tree, (1,), make("Odyssey"))
    assert isinstance(result, Tree)
    assert count_nodes(sample_tree) == before
    assert count_nodes(result) == before + 1


def test_insert_shares_untouched_subtrees(sample_tree: Tree) -> None:
    result = mutator.insert(sample_tree, (1,), make("Odyssey"))
    assert isinstance(result, Tree)
    assert result.roots[0] is sample_tree.roots[0]
    assert result.roots[1] is not sample_tree.roots[1]


def test_rename_by_id(sample_tree: Tree) -> None:
    result = mutator.rename(sample_tree, "dune", "Dune Messiah")
    assert isinstance(result, Tree)
    node = find(result, (1, 0))
    assert node is not None
    assert node.name == "Dune Messiah"
    assert node.id == "dune"


def test_rename_unknown_id_fails(sample_tree: Tree) -> None:
    result = mutator.rename(sample_tree, "nope", "x")
    assert isinstance(result, Failure)
    assert result.kind == FailureKind.NODE_NOT_FOUND


def test_delete_removes_subtree(sample_tree: Tree) -> None:
    result = mutator.delete(sample_tree, (0,))
    assert _names(result.roots) == ["Books", "Inbox"]
    assert count_nodes(result) == 4


def test_delete_missing_path_is_noop(sample_tree: Tree) -> None:
    assert mutator.delete(sample_tree, (0, 9)) is sample_tree
    assert mutator.delete(sample_tree, ()) is sample_tree


def test_delete_by_id(sample_tree: Tree) -> None:
    result = mutator.delete_by_id(sample_tree, "comedy")
    assert find_path(result, "comedy") is None
    assert find_path(result, "airplane") is None
    assert mutator.delete_by_id(sample_tree, "gone") is sample_tree


def test_move_preserves_identity_and_size(sample_tree: Tree) -> None:
    source = (0, 1)
    destination = (1,)
    result = mutator.move(sample_tree, source, destination)
    assert isinstance(result, Tree)
    new_parent = find(result, destination)
    assert new_parent is not None
    moved = new_parent.children[-1]
    original = find(sample_tree, source)
    assert original is not None
    assert moved.id == original.id
    assert moved.children == original.children
    assert count_nodes(result) == count_nodes(sample_tree)


def test_move_to_root(sample_tree: Tree) -> None:
    result = mutator.move(sample_tree, (0, 0, 1), ())
    assert isinstance(result, Tree)
    assert _names(result.roots) == ["Movies", "Books", "Inbox", "Hot Fuzz"]


def test_move_destination_shifted_by_removal(sample_tree: Tree) -> None:
    """Moving Movies under Inbox: Inbox moves from [2] to [1] once Movies is gone."""
    result = mutator.move(sample_tree, (0,), (2,))
    assert isinstance(result, Tree)
    assert _names(result.roots) == ["Books", "Inbox"]
    assert _names(result.roots[1].children) == ["Movies"]


def test_move_into_own_subtree_rejected(sample_tree: Tree) -> None:
    for target in [(0,), (0, 0), (0, 0, 1)]:
        result = mutator.move(sample_tree, (0,), target)
        assert isinstance(result, Failure)
        assert result.kind == FailureKind.CYCLE_REJECTED


def test_move_to_current_parent_rejected(sample_tree: Tree) -> None:
    result = mutator.move(sample_tree, (0, 1), (0,))
    assert isinstance(result, Failure)
    assert result.kind == FailureKind.CYCLE_REJECTED
    result = mutator.move(sample_tree, (2,), ())
    assert isinstance(result, Failure)
    assert result.kind == FailureKind.CYCLE_REJECTED


def test_move_missing_source_or_destination(sample_tree: Tree) -> None:
    missing_source = mutator.move(sample_tree, (7,), (1,))
    assert isinstance(missing_source, Failure)
    assert missing_source.kind == FailureKind.PATH_NOT_FOUND
    missing_destination = mutator.move(sample_tree, (2,), (1, 5))
    assert isinstance(missing_destination, Failure)
    assert missing_destination.kind == FailureKind.PATH_NOT_FOUND


def test_copy_preserves_structure_not_identity(sample_tree: Tree) -> None:
    result = mutator.copy(sample_tree, (0,), (1,))
    assert isinstance(result, Tree)
    original = find(sample_tree, (0,))
    books = find(result, (1,))
    assert original is not None
    assert books is not None
    clone = books.children[-1]
    assert _shape(clone) == _shape(original)
    assert _ids(clone).isdisjoint(_ids(original))
    assert clone.created_at > EPOCH
    assert count_nodes(result) == count_nodes(sample_tree) + 6


def test_copy_into_own_subtree_allowed(sample_tree: Tree) -> None:
    result = mutator.copy(sample_tree, (0,), (0, 1))
    assert isinstance(result, Tree)
    drama = find(result, (0, 1))
    assert drama is not None
    assert _names(drama.children) == ["Heat", "Movies"]


def test_copy_to_current_parent_rejected(sample_tree: Tree) -> None:
    for source in [(2,), (0, 1), (0, 0, 1)]:
        result = mutator.copy(sample_tree, source, source[:-1])
        assert isinstance(result, Failure)
        assert result.kind == FailureKind.CYCLE_REJECTED
    result = mutator.copy_by_id(sample_tree, "dune", "books")
    assert isinstance(result, Failure)
    assert result.kind == FailureKind.CYCLE_REJECTED


def test_copy_missing_source_fails(sample_tree: Tree) -> None:
    assert isinstance(mutator.copy(sample_tree, (4,), ()), Failure)


def test_move_by_id_and_copy_by_id(sample_tree: Tree) -> None:
    moved = mutator.move_by_id(sample_tree, "inbox", "books")
    assert isinstance(moved, Tree)
    assert find_path(moved, "inbox") == (1, 2)

    to_root = mutator.move_by_id(sample_tree, "heat", None)
    assert isinstance(to_root, Tree)
    assert find_path(to_root, "heat") == (3,)

    copied = mutator.copy_by_id(sample_tree, "emma", "drama")
    assert isinstance(copied, Tree)
    drama = find(copied, (0, 1))
    assert drama is not None
    assert _names(drama.children) == ["Heat", "Emma"]


def test_by_id_unknown_ids(sample_tree: Tree) -> None:
    for result in [
        mutator.move_by_id(sample_tree, "nope", None),
        mutator.move_by_id(sample_tree, "heat", "nope"),
        mutator.copy_by_id(sample_tree, "nope", None),
        mutator.copy_by_id(sample_tree, "heat", "nope"),
    ]:
        assert isinstance(result, Failure)
        assert result.kind == FailureKind.NODE_NOT_FOUND


def test_batch_delete(sample_tree: Tree) -> None:
    result = mutator.batch_delete(sample_tree, {"airplane", "hot-fuzz", "dune"}, (0, 0))
    assert isinstance(result, Tree)
    comedy = find(result, (0, 0))
    assert comedy is not None
    assert comedy.children == ()
    # dune is not a child of Comedy
    assert find_path(result, "dune") == (1, 0)


def test_batch_toggle_hidden(sample_tree: Tree) -> None:
    result = mutator.batch_toggle_hidden(sample_tree, ["dune"], (1,))
    assert isinstance(result, Tree)
    books = find(result, (1,))
    assert books is not None
    assert [c.is_hidden for c in books.children] == [True, False]


def test_batch_move_keeps_order(sample_tree: Tree) -> None:
    result = mutator.batch_move(sample_tree, {"dune", "emma"}, (1,), (2,))
    assert isinstance(result, Tree)
    inbox = find(result, (2,))
    assert inbox is not None
    assert _names(inbox.children) == ["Dune", "Emma"]
    assert count_nodes(result) == count_nodes(sample_tree)


def test_batch_move_shifts_destination(sample_tree: Tree) -> None:
    result = mutator.batch_move(sample_tree, {"movies", "books"}, (), (2,))
    assert isinstance(result, Tree)
    assert _names(result.roots) == ["Inbox"]
    assert _names(result.roots[0].children) == ["Movies", "Books"]


def test_batch_move_rejections(sample_tree: Tree) -> None:
    into_self = mutator.batch_move(sample_tree, {"comedy", "drama"}, (0,), (0, 1))
    assert isinstance(into_self, Failure)
    assert into_self.kind == FailureKind.CYCLE_REJECTED
    same_parent = mutator.batch_move(sample_tree, {"comedy"}, (0,), (0,))
    assert isinstance(same_parent, Failure)
    assert same_parent.kind == FailureKind.CYCLE_REJECTED


def test_batch_move_nothing_selected(sample_tree: Tree) -> None:
    assert mutator.batch_move(sample_tree, {"zzz"}, (0,), (1,)) is sample_tree


def test_batch_copy(sample_tree: Tree) -> None:
    result = mutator.batch_copy(sample_tree, {"airplane", "hot-fuzz"}, (0, 0), (1,))
    assert isinstance(result, Tree)
    books = find(result, (1,))
    assert books is not None
    assert _names(books.children) == ["Dune", "Emma", "Airplane", "Hot Fuzz"]
    assert books.children[2].id != "airplane"
    comedy = find(result, (0, 0))
    assert comedy is not None
    assert _names(comedy.children) == ["Airplane", "Hot Fuzz"]


def test_batch_copy_into_same_container_rejected(sample_tree: Tree) -> None:
    result = mutator.batch_copy(sample_tree, {"airplane"}, (0, 0), (0, 0))
    assert isinstance(result, Failure)
    assert result.kind == FailureKind.CYCLE_REJECTED
    assert mutator.batch_copy(sample_tree, {"zzz"}, (0, 0), (0, 0)) == sample_tree


def test_hidden_flags(sample_tree: Tree) -> None:
    hidden = mutator.toggle_hidden(sample_tree, (0, 1))
    assert isinstance(hidden, Tree)
    drama = find(hidden, (0, 1))
    assert drama is not None
    assert drama.is_hidden
    shown = mutator.set_hidden(hidden, (0, 1), hidden=False)
    assert isinstance(shown, Tree)
    drama = find(shown, (0, 1))
    assert drama is not None
    assert not drama.is_hidden
    assert isinstance(mutator.toggle_hidden(sample_tree, ()), Failure)


def test_update_image(sample_tree: Tree) -> None:
    result = mutator.update_image(sample_tree, (2,), b"jpeg")
    assert isinstance(result, Tree)
    inbox = find(result, (2,))
    assert inbox is not None
    assert inbox.image == b"jpeg"
    assert isinstance(mutator.update_image(sample_tree, (9,), b"x"), Failure)


def test_clone_with_fresh_ids_uses_given_time(sample_tree: Tree) -> None:
    clone = mutator.clone_with_fresh_ids(sample_tree.roots[0], now=EPOCH)
    assert all(node.created_at == EPOCH for node in [clone, *clone.children])


def test_insert_move_delete_walkthrough() -> None:
    folder_a = make("FolderA")
    folder_b = make("FolderB")
    sub_x = make("SubX")

    tree = mutator.insert(Tree(), (), folder_a)
    assert isinstance(tree, Tree)
    tree = mutator.insert(tree, (), folder_b)
    assert isinstance(tree, Tree)
    tree = mutator.insert(tree, (0,), sub_x)
    assert isinstance(tree, Tree)
    assert count_nodes(tree) == 3

    tree = mutator.move(tree, (0, 0), (1,))
    assert isinstance(tree, Tree)
    assert tree.roots[0].children == ()
    assert _names(tree.roots[1].children) == ["SubX"]

    tree = mutator.delete(tree, (0,))
    assert count_nodes(tree) == 2
    assert [node.name for node, _ in iter_nodes(tree)] == ["FolderB", "SubX"]
    assert find_path(tree, folder_a.id) is None


def _chain(depth: int) -> Folder:
    node = make("bottom")
    for level in range(depth):
        node = Folder(id=f"n{level}", name=f"N{level}", children=(node,), created_at=EPOCH)
    return node


def test_copy_very_deep_subtree() -> None:
    tree = Tree(roots=(_chain(3000), make("Target")))
    result = mutator.copy(tree, (0,), (1,))
    assert isinstance(result, Tree)
    clone = result.roots[1].children[0]
    depth = 0
    while clone.children:
        assert clone.id != f"n{2999 - depth}"
        clone = clone.children[0]
        depth += 1
    assert depth == 3000
    assert clone.name == "bottom"
