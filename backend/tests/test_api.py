"""
End-to-end tests of the HTTP API against the in-memory store.
"""

import asyncio
import json

import pytest


def run(coro):
    return asyncio.run(coro)


class TestAuthentication:
    def test_missing_credentials(self, client):
        response = client.get("/api/folders")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}
        assert response.headers["WWW-Authenticate"].startswith("Basic realm=")

    def test_wrong_password(self, client):
        response = client.get("/api/admin/stats", auth=("admin", "wrong"))

        assert response.status_code == 401

    def test_valid_credentials(self, client, auth_headers):
        response = client.get("/api/folders", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestFolderBrowsing:
    def test_list_folders(self, client, store, seed, auth_headers):
        run(seed({"a/1.png": 5, "a/b/2.png": 7, "c/3.jpg": 1, "top.png": 1}))

        response = client.get(
            "/api/folders",
            params={"depth": 2, "include_files": True},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["path"] == ""
        assert [f["name"] for f in data["folders"]] == ["a", "c"]
        a = data["folders"][0]
        assert a["fileCount"] == 2
        assert a["totalSize"] == 12
        assert a["children"][0]["path"] == "a/b"
        assert [f["name"] for f in data["files"]] == ["top.png"]
        assert data["pagination"]["total"] == 2

    def test_depth_out_of_range(self, client, auth_headers):
        response = client.get("/api/folders", params={"depth": 0}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"].startswith("Invalid request")

    def test_invalid_path(self, client, auth_headers):
        response = client.get(
            "/api/folders", params={"path": "../etc"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Path traversal not allowed",
        }

    def test_list_images(self, client, seed, auth_headers):
        run(seed({"a/1.png": 5, "a/readme.txt": 1}))

        response = client.get("/api/images", params={"folder": "a"}, headers=auth_headers)

        body = response.json()
        assert body["success"] is True
        assert body["folder"] == "a"
        assert [image["key"] for image in body["images"]] == ["a/1.png"]

    def test_stats(self, client, seed, auth_headers):
        run(seed({"a/1.png": 5, "b/2.gif": 5}))

        response = client.get("/api/admin/stats", headers=auth_headers)

        stats = response.json()["stats"]
        assert stats["totalFiles"] == 2
        assert stats["totalSize"] == 10
        assert stats["fileTypes"] == {"png": 1, "gif": 1}
        assert "totalSizeMB" in stats

    def test_preview_failure_keeps_listing(self, client, store, seed, auth_headers):
        run(seed({"a/1.png": 1, "b/2.png": 1}))
        store.fail_list_prefixes.add("a/")

        response = client.get(
            "/api/folders", params={"include_previews": True}, headers=auth_headers
        )

        assert response.status_code == 200
        a, b = response.json()["data"]["folders"]
        assert a["previews"] is None
        assert [p["path"] for p in b["previews"]] == ["b/2.png"]


class TestUploads:
    def test_overwritten_upload_lists_once(self, client, seed, auth_headers):
        run(seed({"albums/trip/a.png": 1}))

        response = client.post(
            "/api/admin/upload/batch",
            data={"targetPath": "albums/trip", "conflictResolution": "overwrite"},
            files=[("files", ("a.png", b"fresh", "image/png"))],
            headers=auth_headers,
        )
        assert response.json()["data"]["results"][0]["finalPath"] == "albums/trip/a.png"

        listing = client.get(
            "/api/folders",
            params={"path": "albums/trip", "include_files": True},
            headers=auth_headers,
        )

        files = listing.json()["data"]["files"]
        assert [f["path"] for f in files] == ["albums/trip/a.png"]
        assert files[0]["size"] == 5

    def test_simple_upload_overwrites(self, client, store, seed, auth_headers):
        run(seed({"x/a.png": 1}))

        response = client.post(
            "/api/admin/upload",
            data={"folder": "x"},
            files=[
                ("files", ("a.png", b"new", "image/png")),
                ("files", ("evil.exe", b"MZ", "application/x-msdownload")),
            ],
            headers=auth_headers,
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0] == {
            "name": "a.png",
            "success": True,
            "key": "x/a.png",
            "url": "https://images.example.com/x/a.png",
            "error": None,
        }
        assert results[1]["success"] is False
        assert run(store.get("x/a.png")).body == b"new"

    def test_simple_upload_all_failed(self, client, auth_headers):
        response = client.post(
            "/api/admin/upload",
            files=[("files", ("a.txt", b"text", "text/plain"))],
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No files were uploaded"

    def test_batch_upload(self, client, store, auth_headers):
        response = client.post(
            "/api/admin/upload/batch",
            data={
                "folderStructure": json.dumps({"a.png": "trip/a.png"}),
                "targetPath": "albums",
                "conflictResolution": "rename",
            },
            files=[
                ("files", ("a.png", b"1", "image/png")),
                ("files", ("b.jpg", b"2", "image/jpeg")),
            ],
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Upload completed. Success: 2/2"
        summary = body["data"]["summary"]
        assert summary == {
            "totalFiles": 2,
            "successfulUploads": 2,
            "failedUploads": 0,
            "skippedUploads": 0,
        }
        assert body["data"]["results"][0]["finalPath"] == "albums/trip/a.png"
        assert body["data"]["results"][0]["status"] == "success"
        assert "albums/trip/.folder-placeholder" in store.keys()
        assert "albums/.folder-placeholder" in store.keys()

    def test_batch_upload_all_failed(self, client, auth_headers):
        response = client.post(
            "/api/admin/upload/batch",
            files=[("files", ("bad.exe", b"MZ", "application/x-executable"))],
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "All uploads failed"
        assert body["data"]["summary"]["failedUploads"] == 1

    def test_batch_upload_requires_files(self, client, auth_headers):
        response = client.post(
            "/api/admin/upload/batch", data={"targetPath": "x"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No files provided"

    def test_batch_upload_bad_policy(self, client, auth_headers):
        response = client.post(
            "/api/admin/upload/batch",
            data={"conflictResolution": "merge"},
            files=[("files", ("a.png", b"1", "image/png"))],
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestFolderAdministration:
    def test_create_folder(self, client, store, auth_headers):
        response = client.post(
            "/api/admin/folders", json={"name": "summer"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"name": "summer", "path": "summer"}
        assert store.keys() == ["summer/.folder-placeholder"]

    def test_create_duplicate_folder(self, client, seed, auth_headers):
        run(seed({"summer/1.png": 1}))

        response = client.post(
            "/api/admin/folders", json={"name": "summer"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

    def test_create_nested_folder(self, client, auth_headers):
        response = client.post(
            "/api/admin/folders/nested",
            json={"path": "a/b/c", "createParents": True},
            headers=auth_headers,
        )

        assert response.json()["data"]["createdPaths"] == ["a", "a/b", "a/b/c"]

    def test_move_folder(self, client, store, seed, auth_headers):
        run(seed({"src/1.png": 3, "src/.folder-placeholder": 0}))

        response = client.put(
            "/api/admin/folders/move",
            json={"sourcePath": "src", "targetPath": "dst"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["movedFiles"] == 1
        assert data["movedFolders"] == 1
        assert store.keys() == ["dst/.folder-placeholder", "dst/1.png"]

    def test_move_accepts_short_field_names(self, client, store, seed, auth_headers):
        run(seed({"src/1.png": 3}))

        response = client.put(
            "/api/admin/folders/move",
            json={"source": "src", "target": "deep/dst", "create_parents": True},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["createdParents"] == ["deep"]

    def test_move_missing_source(self, client, auth_headers):
        response = client.put(
            "/api/admin/folders/move",
            json={"sourcePath": "nope", "targetPath": "dst"},
            headers=auth_headers,
        )

        assert response.status_code == 404

    def test_move_where_every_copy_fails(self, client, store, seed, auth_headers):
        run(seed({"src/1.png": 1, "src/2.png": 2}))
        store.fail_put.update({"dst/1.png", "dst/2.png"})
        payload = {"sourcePath": "src", "targetPath": "dst"}

        response = client.put(
            "/api/admin/folders/move", json=payload, headers=auth_headers
        )

        assert response.status_code == 500
        data = response.json()["data"]
        assert data["failed"] == 2
        assert data["placeholderCreated"] is False
        assert store.keys() == ["src/1.png", "src/2.png"]

        store.fail_put.clear()
        retry = client.put("/api/admin/folders/move", json=payload, headers=auth_headers)

        assert retry.status_code == 200
        assert retry.json()["data"]["movedFiles"] == 2
        assert store.keys() == [
            "dst/.folder-placeholder",
            "dst/1.png",
            "dst/2.png",
        ]

    def test_rename_folder(self, client, store, seed, auth_headers):
        run(seed({"old/1.png": 1}))

        response = client.put(
            "/api/admin/folders/old", json={"name": "new"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert "new/1.png" in store.keys()

    def test_delete_recursive(self, client, store, seed, auth_headers):
        run(seed({"a/1.png": 4, "a/b/2.png": 6}))

        response = client.delete(
            "/api/admin/folders/recursive", params={"path": "a"}, headers=auth_headers
        )

        data = response.json()["data"]
        assert data["deletedFiles"] == 2
        assert data["freedBytes"] == 10
        assert store.keys() == []

    def test_delete_empty_folder(self, client, store, auth_headers):
        client.post("/api/admin/folders", json={"name": "empty"}, headers=auth_headers)

        response = client.delete("/api/admin/folders/empty", headers=auth_headers)

        assert response.status_code == 200
        assert store.keys() == []

    def test_delete_non_empty_folder(self, client, seed, auth_headers):
        run(seed({"full/1.png": 1}))

        response = client.delete("/api/admin/folders/full", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize(
        "method, url",
        [
            ("post", "/api/admin/folders"),
            ("put", "/api/admin/folders/move"),
            ("delete", "/api/admin/folders/recursive?path=a"),
        ],
    )
    def test_admin_routes_require_auth(self, client, method, url):
        response = client.request(method.upper(), url, json={})

        assert response.status_code == 401
