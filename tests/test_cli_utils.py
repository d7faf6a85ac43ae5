import pytest

from gnocchi.cli import utils
from gnocchi.data.phenotypes import load_phenotypes


def _required(tmp_path):
    return [
        "--genotypes", str(tmp_path / "g.vcf"),
        "--phenotypes", str(tmp_path / "p.txt"),
        "--pheno-name", "status",
    ]


def test_split_names() -> None:
    assert utils.split_names(None) is None
    assert utils.split_names("age,sex,") == ["age", "sex"]
    assert utils.split_names(" age,sex ") == [" age", "sex "]
    assert utils.split_names(",") is None


def test_parse_args_defaults(tmp_path) -> None:
    args = utils.parse_args(_required(tmp_path))
    assert args.genotypes.endswith("g.vcf")
    assert args.pheno_name == "status"
    assert args.ploidy == 2
    assert args.mind == pytest.approx(0.1)
    assert args.maf == pytest.approx(0.01)
    assert args.geno == pytest.approx(1.0)
    assert args.overwrite is False
    assert args.sparse is False
    assert args.one_two is False
    assert args.n_jobs == 1


def test_parse_args_respects_overrides(tmp_path) -> None:
    args = utils.parse_args(
        _required(tmp_path)
        + [
            "--covar-file", str(tmp_path / "c.txt"),
            "--covar-names", "age,sex",
            "--ploidy", "4",
            "--maf", "0.5",
            "--mind", "0",
            "--one-two",
            "--overwrite",
            "--sparse",
            "--n-jobs", "-1",
        ]
    )
    assert args.ploidy == 4
    assert args.maf == pytest.approx(0.5)
    assert args.mind == 0.0
    assert args.one_two is True
    assert args.overwrite is True
    assert args.sparse is True
    assert args.covar_names == "age,sex"
    assert args.n_jobs == -1


@pytest.mark.parametrize(
    "extra",
    [
        ["--maf", "0.6"],
        ["--mind", "1.5"],
        ["--geno", "-0.1"],
        ["--ploidy", "0"],
        ["--n-jobs", "0"],
        ["--covar-file", "c.txt"],
    ],
)
def test_parse_args_rejects_invalid_values(tmp_path, extra) -> None:
    with pytest.raises(SystemExit):
        utils.parse_args(_required(tmp_path) + extra)


def test_split_names_can_select_labels_with_spaces(tmp_path) -> None:
    phe = tmp_path / "p.txt"
    phe.write_text("ID\tstatus\nS1\t1\n", encoding="utf-8")
    cov = tmp_path / "c.txt"
    cov.write_text("ID\t age\nS1\t30\n", encoding="utf-8")

    (phenotype,) = load_phenotypes(phe, "status", include_covariates=True, covar_file=cov,
                                   covar_names=utils.split_names(" age"), verbose=False)

    assert phenotype.phenotype == "status, age"
    assert phenotype.value == (1.0, 30.0)
