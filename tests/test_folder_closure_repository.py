"""
测试闭包表仓储的关系算法
"""
from sqlalchemy import select

from app.models.folder import Folder, OwnerType
from app.models.folder_path import FolderPath, build_ancestor_paths
from app.repositories.folder_closure_repository import FolderClosureRepository
from app.repositories.folder_repository import FolderRepository


async def add_folder(db, name, parent=None):
    """直接通过仓储创建文件夹及其闭包行"""
    folders = FolderRepository(db)
    closure = FolderClosureRepository(db)
    folder = Folder.new(
        name=name,
        parent_id=parent.id if parent else None,
        owner_id=1,
        owner_type=OwnerType.USER,
        created_by=1,
        depth=parent.depth + 1 if parent else 0,
    )
    await folders.create(folder)
    await closure.insert_self_reference(folder.id)
    if parent:
        parent_paths = await closure.find_ancestor_paths(parent.id)
        await closure.insert_ancestor_paths(build_ancestor_paths(folder.id, parent_paths))
    return folder


async def all_paths(db):
    result = await db.execute(
        select(FolderPath.ancestor_id, FolderPath.descendant_id, FolderPath.path_length)
    )
    return {(row.ancestor_id, row.descendant_id, row.path_length) for row in result.all()}


async def test_insert_builds_complete_closure(db):
    """新建文件夹后：自引用行 + 每个祖先一行"""
    root = await add_folder(db, "root")
    mid = await add_folder(db, "mid", root)
    leaf = await add_folder(db, "leaf", mid)

    assert await all_paths(db) == {
        (root.id, root.id, 0),
        (mid.id, mid.id, 0),
        (leaf.id, leaf.id, 0),
        (root.id, mid.id, 1),
        (mid.id, leaf.id, 1),
        (root.id, leaf.id, 2),
    }


async def test_ancestor_and_descendant_queries(db):
    closure = FolderClosureRepository(db)
    root = await add_folder(db, "root")
    mid = await add_folder(db, "mid", root)
    leaf = await add_folder(db, "leaf", mid)
    sibling = await add_folder(db, "sibling", root)

    # 最近的祖先在前
    assert await closure.find_ancestor_ids(leaf.id) == [mid.id, root.id]
    assert await closure.find_ancestor_ids(root.id) == []

    assert set(await closure.find_descendant_ids(root.id)) == {mid.id, leaf.id, sibling.id}
    assert await closure.find_descendant_ids(leaf.id) == []

    assert await closure.find_descendants_with_depth(root.id) == {mid.id: 1, leaf.id: 2, sibling.id: 1}

    paths = await closure.find_ancestor_paths(leaf.id)
    assert [(p.ancestor_id, p.path_length) for p in paths] == [(leaf.id, 0), (mid.id, 1), (root.id, 2)]


async def test_insert_ancestor_paths_ignores_empty(db):
    closure = FolderClosureRepository(db)
    await closure.insert_ancestor_paths([])
    assert await all_paths(db) == set()


async def test_move_subtree_keeps_internal_rows(db):
    """移动子树：外部祖先行被替换，子树内部行保持不变"""
    closure = FolderClosureRepository(db)
    a = await add_folder(db, "a")
    b = await add_folder(db, "b", a)
    c = await add_folder(db, "c", b)
    d = await add_folder(db, "d", c)
    x = await add_folder(db, "x")

    # 把 b 子树从 a 下移动到 x 下
    await closure.move_subtree(b.id, await closure.find_ancestor_paths(x.id))

    paths = await all_paths(db)
    assert (a.id, b.id, 1) not in paths
    assert (a.id, c.id, 2) not in paths
    assert (a.id, d.id, 3) not in paths

    assert {(x.id, b.id, 1), (x.id, c.id, 2), (x.id, d.id, 3)} <= paths
    assert {(b.id, c.id, 1), (b.id, d.id, 2), (c.id, d.id, 1)} <= paths
    assert {(b.id, b.id, 0), (c.id, c.id, 0), (d.id, d.id, 0)} <= paths

    assert await closure.find_ancestor_ids(d.id) == [c.id, b.id, x.id]
    assert await closure.find_descendant_ids(a.id) == []


async def test_move_subtree_under_deep_parent(db):
    closure = FolderClosureRepository(db)
    r = await add_folder(db, "r")
    p = await add_folder(db, "p", r)
    q = await add_folder(db, "q", p)
    s = await add_folder(db, "s")
    t = await add_folder(db, "t", s)

    await closure.move_subtree(s.id, await closure.find_ancestor_paths(q.id))

    assert await closure.find_ancestor_ids(t.id) == [s.id, q.id, p.id, r.id]
    assert await closure.find_descendants_with_depth(r.id) == {p.id: 1, q.id: 2, s.id: 3, t.id: 4}


async def test_move_subtree_to_root(db):
    closure = FolderClosureRepository(db)
    a = await add_folder(db, "a")
    b = await add_folder(db, "b", a)
    c = await add_folder(db, "c", b)

    await closure.move_subtree(b.id, [])

    assert await closure.find_ancestor_ids(b.id) == []
    assert await closure.find_ancestor_ids(c.id) == [b.id]
    assert await closure.find_descendant_ids(a.id) == []


async def test_delete_subtree_paths_removes_every_row_touching_subtree(db):
    closure = FolderClosureRepository(db)
    a = await add_folder(db, "a")
    b = await add_folder(db, "b", a)
    c = await add_folder(db, "c", b)
    other = await add_folder(db, "other", a)

    await closure.delete_subtree_paths(b.id)

    paths = await all_paths(db)
    subtree = {b.id, c.id}
    assert not any(anc in subtree or desc in subtree for anc, desc, _ in paths)
    assert paths == {(a.id, a.id, 0), (other.id, other.id, 0), (a.id, other.id, 1)}
