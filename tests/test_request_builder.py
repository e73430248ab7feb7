"""Tests for request building: paths, encoding, auth and body kinds."""

import base64
import unittest

from kaggle_client.application.domain import Credentials
from kaggle_client.application.exceptions import ConfigurationError, ValidationError
from kaggle_client.application.query import (
    CompetitionCategory,
    CompetitionsListQuery,
    DatasetFileType,
    DatasetsListQuery,
    KernelSortBy,
    KernelsListQuery,
)
from kaggle_client.infrastructure.request_builder import (
    ENDPOINTS,
    RequestBuilder,
    basic_auth_header,
    check_slug,
    split_ref,
)

from support import BASE_URL, CREDENTIALS, make_builder


class TestSlugs(unittest.TestCase):
    """Validation of slug-shaped caller input."""

    def test_split_ref(self):
        self.assertEqual(split_ref("zillow/zecon"), ("zillow", "zecon"))

    def test_split_ref_rejects_malformed(self):
        for bad in ["", "   ", "zecon", "zillow/", "/zecon", "a/b/c", None]:
            with self.subTest(ref=bad):
                with self.assertRaises(ValidationError):
                    split_ref(bad)

    def test_check_slug(self):
        self.assertEqual(check_slug("titanic", "competition"), "titanic")
        with self.assertRaises(ValidationError) as ctx:
            check_slug("", "competition")
        self.assertEqual(ctx.exception.field, "competition")
        with self.assertRaises(ValidationError):
            check_slug("a/b", "competition")


class TestRequestBuilder(unittest.TestCase):

    def setUp(self):
        self.builder = make_builder()

    def test_dataset_path_keeps_segment_order(self):
        for owner, slug in [("zillow", "zecon"), ("a-b", "c_d"), ("x", "y")]:
            with self.subTest(owner=owner, slug=slug):
                request = self.builder.build(
                    "dataset_view",
                    path_params={"ownerSlug": owner, "datasetSlug": slug},
                )
                self.assertEqual(
                    str(request.url), f"{BASE_URL}/datasets/view/{owner}/{slug}"
                )

    def test_path_segments_are_url_encoded(self):
        request = self.builder.build(
            "dataset_download_file",
            path_params={
                "ownerSlug": "own er",
                "datasetSlug": "set",
                "fileName": "dir/file name.csv",
            },
        )
        self.assertEqual(
            request.url.raw_path,
            b"/api/v1/datasets/download/own%20er/set/dir%2Ffile%20name.csv",
        )

    def test_missing_path_parameter(self):
        with self.assertRaises(ValidationError) as ctx:
            self.builder.build(
                "dataset_view", path_params={"ownerSlug": "zillow"}
            )
        self.assertEqual(ctx.exception.field, "datasetSlug")

    def test_unknown_operation(self):
        with self.assertRaises(ValidationError):
            self.builder.build("does_not_exist")

    def test_basic_auth_round_trip(self):
        pairs = [("user", "key"), ("ünï", "k:e:y"), ("a", "b" * 64)]
        for username, key in pairs:
            with self.subTest(username=username):
                header = basic_auth_header(Credentials(username, key))
                scheme, token = header.split(" ", 1)
                self.assertEqual(scheme, "Basic")
                self.assertEqual(
                    base64.b64decode(token).decode("utf-8"), f"{username}:{key}"
                )

    def test_headers_attached(self):
        request = self.builder.build("datasets_list")
        self.assertEqual(
            request.headers["Authorization"], basic_auth_header(CREDENTIALS)
        )
        self.assertEqual(request.headers["User-Agent"], "kaggle-client/test")
        self.assertEqual(request.method, "GET")

    def test_json_body_content_type(self):
        request = self.builder.build("kernel_push", json={"text": "print(1)"})
        self.assertEqual(request.method, "POST")
        self.assertEqual(request.headers["Content-Type"], "application/json")

    def test_multipart_body_content_type(self):
        request = self.builder.build(
            "competition_submission_upload",
            path_params={
                "guid": "abc", "contentLength": 3, "lastModifiedDateUtc": 10,
            },
            files={"file": ("sub.csv", b"a,b", "text/csv")},
        )
        self.assertTrue(
            request.headers["Content-Type"].startswith("multipart/form-data")
        )
        self.assertTrue(
            str(request.url).endswith("competitions/submissions/upload/abc/3/10")
        )

    def test_form_body_content_type(self):
        request = self.builder.build(
            "competition_submit",
            path_params={"id": "titanic"},
            data={"blobFileTokens": "tok", "submissionDescription": "hi"},
        )
        self.assertEqual(
            request.headers["Content-Type"], "application/x-www-form-urlencoded"
        )

    def test_requires_credentials(self):
        with self.assertRaises(ConfigurationError):
            RequestBuilder(Credentials("", ""), BASE_URL)

    def test_external_upload_has_no_auth(self):
        request = self.builder.build_external(
            "PUT", "https://storage.test/upload?sig=1", b"data"
        )
        self.assertNotIn("Authorization", request.headers)

    def test_every_endpoint_has_a_method(self):
        for endpoint in ENDPOINTS.values():
            self.assertIn(endpoint.method, ("GET", "POST"))


class TestListQueries(unittest.TestCase):

    def test_unset_filters_are_empty_strings(self):
        params = DatasetsListQuery(search="titanic").to_params()
        self.assertEqual(params["search"], "titanic")
        self.assertEqual(params["user"], "")
        self.assertEqual(params["page"], "1")
        self.assertEqual(
            set(params),
            {"group", "sortBy", "size", "filetype", "license", "tagids",
             "search", "user", "page", "maxSize", "minSize"},
        )

    def test_enum_values_on_the_wire(self):
        params = CompetitionsListQuery(
            category=CompetitionCategory.GETTING_STARTED
        ).to_params()
        self.assertEqual(params["category"], "gettingStarted")
        self.assertEqual(
            DatasetsListQuery(file_type=DatasetFileType.BIG_QUERY).to_params()["filetype"],
            "bigQuery",
        )
        self.assertEqual(
            KernelsListQuery(sort_by=KernelSortBy.VOTE_COUNT).to_params()["sortBy"],
            "voteCount",
        )

    def test_query_reaches_the_url(self):
        request = make_builder().build(
            "competitions_list", params=CompetitionsListQuery(page=2).to_params()
        )
        self.assertEqual(request.url.params["page"], "2")
        self.assertEqual(request.url.params["group"], "")


if __name__ == "__main__":
    unittest.main()
