import csv, json


def write_jsonl_records(records, out):
    count = 0
    for record in records:
        out.write(json.dumps(record) + "\n")
        count += 1
    return count


def write_csv_records(records, out_path):
    rows = list(records)
    if not rows:
        return 0
    cols = sorted({c for r in rows for c in r.keys()})
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=cols)
        w.writeheader()
        for r in rows:
            w.writerow(r)
    return len(rows)
