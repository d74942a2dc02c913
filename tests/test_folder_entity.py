"""
测试文件夹实体与闭包行构建
"""
import uuid

import pytest

from app.core.exceptions import ValidationError
from app.models.folder import Folder, OwnerType, FolderStatus, MAX_FOLDER_DEPTH
from app.models.folder_path import FolderPath, build_ancestor_paths


def new_folder(depth=0, parent_id=None, owner_id=1):
    return Folder.new(
        name="Docs",
        parent_id=parent_id,
        owner_id=owner_id,
        owner_type=OwnerType.USER,
        created_by=owner_id,
        depth=depth,
    )


def test_new_folder_defaults():
    folder = new_folder()
    assert isinstance(folder.id, uuid.UUID)
    assert folder.status == FolderStatus.ACTIVE
    assert folder.is_root
    assert folder.created_by == folder.owner_id == 1
    assert folder.created_at == folder.updated_at


def test_new_folder_depth_bound():
    assert new_folder(depth=MAX_FOLDER_DEPTH).depth == MAX_FOLDER_DEPTH
    with pytest.raises(ValidationError):
        new_folder(depth=MAX_FOLDER_DEPTH + 1)


def test_new_folder_rejects_unknown_owner_type():
    with pytest.raises(ValidationError):
        Folder.new(name="x", parent_id=None, owner_id=1, owner_type="team", created_by=1, depth=0)


def test_ownership():
    folder = new_folder(owner_id=7)
    assert folder.is_owned_by(7)
    assert not folder.is_owned_by(8)

    folder.owner_type = OwnerType.GROUP
    assert not folder.is_owned_by(7)


def test_rename_and_move_to():
    folder = new_folder()
    parent_id = uuid.uuid4()

    folder.rename("Archive")
    assert folder.equals_name("Archive")

    folder.move_to(parent_id, 3)
    assert folder.parent_id == parent_id
    assert folder.depth == 3
    assert not folder.is_root


def test_can_move_to_rejects_self():
    folder = new_folder()
    with pytest.raises(ValidationError):
        folder.can_move_to(folder.id, 1, [])


def test_can_move_to_rejects_descendant():
    folder = new_folder()
    child_id = uuid.uuid4()
    with pytest.raises(ValidationError):
        folder.can_move_to(child_id, 2, [uuid.uuid4(), child_id])


def test_can_move_to_checks_whole_subtree_depth():
    folder = new_folder()
    folder.can_move_to(uuid.uuid4(), MAX_FOLDER_DEPTH, [])
    folder.can_move_to(None, 0, [])
    with pytest.raises(ValidationError):
        folder.can_move_to(uuid.uuid4(), MAX_FOLDER_DEPTH + 1, [])


def test_build_ancestor_paths_for_new_child():
    root, parent, child = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    parent_paths = [
        FolderPath.self_reference(parent),
        FolderPath(ancestor_id=root, descendant_id=parent, path_length=1),
    ]

    paths = build_ancestor_paths(child, parent_paths)

    assert {(p.ancestor_id, p.descendant_id, p.path_length) for p in paths} == {
        (parent, child, 1),
        (root, child, 2),
    }
    assert not any(p.is_self_reference for p in paths)


def test_build_ancestor_paths_with_offset():
    parent, node = uuid.uuid4(), uuid.uuid4()
    paths = build_ancestor_paths(node, [FolderPath.self_reference(parent)], offset=2)
    assert [(p.ancestor_id, p.path_length) for p in paths] == [(parent, 3)]


def test_new_folder_validates_name():
    folder = Folder.new(name="  Docs ", parent_id=None, owner_id=1, owner_type=OwnerType.USER, created_by=1, depth=0)
    assert folder.name == "Docs"

    for bad_name in ("", "   ", "a/b", "..", "x" * 256):
        with pytest.raises(ValidationError):
            Folder.new(name=bad_name, parent_id=None, owner_id=1, owner_type=OwnerType.USER, created_by=1, depth=0)


def test_rename_validates_name():
    folder = new_folder()
    folder.rename(" Archive ")
    assert folder.name == "Archive"

    for bad_name in ("", "a\\b", "what?"):
        with pytest.raises(ValidationError):
            folder.rename(bad_name)
    assert folder.name == "Archive"
