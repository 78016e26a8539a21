"""
SQL text for every check query.

Kept as plain constants so check metadata can publish the query without
reading files, and the Queries collaborator executes exactly what
`pgdoctor explain --sql-only` shows.
"""

DATABASE_CACHE_EFFICIENCY = """\
SELECT
    blks_hit,
    blks_read,
    CASE
        WHEN blks_hit + blks_read = 0 THEN NULL
        ELSE round(100.0 * blks_hit / (blks_hit + blks_read), 2)
    END AS cache_hit_ratio
FROM pg_stat_database
WHERE datname = current_database();
"""

BROKEN_INDEXES = """\
SELECT
    n.nspname || '.' || t.relname AS table_name,
    i.relname AS index_name
FROM pg_index x
JOIN pg_class i ON i.oid = x.indexrelid
JOIN pg_class t ON t.oid = x.indrelid
JOIN pg_namespace n ON n.oid = t.relnamespace
WHERE NOT x.indisvalid
ORDER BY table_name, index_name;
"""

INDEX_USAGE_STATS = """\
SELECT
    s.schemaname || '.' || s.relname AS table_name,
    s.indexrelname AS index_name,
    s.idx_scan,
    pg_relation_size(s.indexrelid) AS index_size_bytes,
    coalesce(t.n_tup_ins, 0) + coalesce(t.n_tup_upd, 0) + coalesce(t.n_tup_del, 0) AS table_writes,
    CASE
        WHEN io.idx_blks_hit + io.idx_blks_read = 0 THEN NULL
        ELSE round(100.0 * io.idx_blks_hit / (io.idx_blks_hit + io.idx_blks_read), 2)
    END AS cache_hit_ratio,
    x.indisprimary AS is_primary,
    x.indisunique AS is_unique
FROM pg_stat_user_indexes s
JOIN pg_index x ON x.indexrelid = s.indexrelid
JOIN pg_statio_user_indexes io ON io.indexrelid = s.indexrelid
LEFT JOIN pg_stat_user_tables t ON t.relid = s.relid
ORDER BY pg_relation_size(s.indexrelid) DESC;
"""

SEQUENCE_HEALTH = """\
WITH seqs AS (
    SELECT
        s.schemaname || '.' || s.sequencename AS sequence_name,
        s.data_type::text AS seq_data_type,
        s.last_value AS current_value,
        s.max_value,
        s.cycle AS is_cyclic,
        d.refobjid AS table_oid,
        d.refobjsubid AS column_num
    FROM pg_sequences s
    JOIN pg_class c ON c.relname = s.sequencename
    JOIN pg_namespace n ON n.oid = c.relnamespace AND n.nspname = s.schemaname
    LEFT JOIN pg_depend d ON d.objid = c.oid AND d.deptype IN ('a', 'i')
)
SELECT
    seqs.sequence_name,
    tn.nspname || '.' || t.relname AS table_name,
    a.attname AS column_name,
    format_type(a.atttypid, a.atttypmod) AS column_type,
    seqs.seq_data_type,
    round(100.0 * coalesce(seqs.current_value, 0) / least(
        seqs.max_value,
        CASE a.atttypid WHEN 'int2'::regtype THEN 32767 WHEN 'int4'::regtype THEN 2147483647
            ELSE 9223372036854775807 END
    ), 2) AS usage_percent,
    seqs.current_value,
    seqs.max_value,
    CASE a.atttypid WHEN 'int2'::regtype THEN 32767 WHEN 'int4'::regtype THEN 2147483647
        ELSE 9223372036854775807 END AS column_max_value,
    least(
        seqs.max_value,
        CASE a.atttypid WHEN 'int2'::regtype THEN 32767 WHEN 'int4'::regtype THEN 2147483647
            ELSE 9223372036854775807 END
    ) - coalesce(seqs.current_value, 0) AS remaining_values,
    seqs.is_cyclic,
    (a.atttypid IN ('int2'::regtype, 'int4'::regtype)
        AND coalesce(seqs.current_value, 0) > 0.5 * CASE a.atttypid
            WHEN 'int2'::regtype THEN 32767 ELSE 2147483647 END) AS should_be_bigint,
    (seqs.max_value > CASE a.atttypid WHEN 'int2'::regtype THEN 32767
        WHEN 'int4'::regtype THEN 2147483647 ELSE 9223372036854775807 END) AS sequence_exceeds_column
FROM seqs
LEFT JOIN pg_class t ON t.oid = seqs.table_oid
LEFT JOIN pg_namespace tn ON tn.oid = t.relnamespace
LEFT JOIN pg_attribute a ON a.attrelid = seqs.table_oid AND a.attnum = seqs.column_num
ORDER BY usage_percent DESC NULLS LAST;
"""

INVALID_PRIMARY_KEY_TYPES = """\
SELECT
    n.nspname || '.' || c.relname AS table_name,
    a.attname AS column_name,
    format_type(a.atttypid, a.atttypmod) AS column_type,
    CASE a.atttypid
        WHEN 'int2'::regtype THEN greatest(c.reltuples, 0) / 32767.0
        WHEN 'int4'::regtype THEN greatest(c.reltuples, 0) / 2147483647.0
        ELSE NULL
    END AS usage_pct,
    greatest(c.reltuples, 0)::bigint AS estimated_rows
FROM pg_index x
JOIN pg_class c ON c.oid = x.indrelid
JOIN pg_namespace n ON n.oid = c.relnamespace
JOIN pg_attribute a ON a.attrelid = c.oid AND a.attnum = ANY (x.indkey)
WHERE x.indisprimary
  AND c.relkind IN ('r', 'p')
  AND n.nspname NOT IN ('pg_catalog', 'information_schema')
  AND a.atttypid NOT IN ('int8'::regtype, 'uuid'::regtype)
ORDER BY usage_pct DESC NULLS LAST, table_name;
"""

PG_VERSION = """\
SELECT
    current_setting('server_version_num')::int / 10000 AS major,
    current_setting('server_version_num')::int % 10000 AS minor,
    version() AS version;
"""

TEMP_USAGE = """\
SELECT
    temp_files,
    temp_bytes,
    stats_reset,
    extract(epoch FROM now() - stats_reset) AS seconds_since_reset,
    CASE
        WHEN extract(epoch FROM now() - stats_reset) > 0
        THEN temp_files * 3600.0 / extract(epoch FROM now() - stats_reset)
    END AS temp_files_per_hour,
    CASE
        WHEN extract(epoch FROM now() - stats_reset) > 0
        THEN temp_bytes * 3600.0 / extract(epoch FROM now() - stats_reset)
    END AS temp_bytes_per_hour
FROM pg_stat_database
WHERE datname = current_database();
"""

DATABASE_FREEZE_AGE = """\
SELECT
    datname AS database_name,
    age(datfrozenxid) AS freeze_age,
    current_setting('autovacuum_freeze_max_age')::bigint AS freeze_max_age
FROM pg_database
WHERE datallowconn
ORDER BY age(datfrozenxid) DESC;
"""

TABLE_FREEZE_AGE = """\
SELECT
    n.nspname || '.' || c.relname AS table_name,
    age(c.relfrozenxid) AS freeze_age,
    pg_total_relation_size(c.oid) AS table_size_bytes,
    s.last_vacuum,
    s.last_autovacuum,
    s.vacuum_count,
    s.autovacuum_count
FROM pg_class c
JOIN pg_namespace n ON n.oid = c.relnamespace
LEFT JOIN pg_stat_user_tables s ON s.relid = c.oid
WHERE c.relkind IN ('r', 'm', 't')
  AND n.nspname NOT IN ('pg_catalog', 'information_schema')
  AND age(c.relfrozenxid) >= 400000000
ORDER BY age(c.relfrozenxid) DESC
LIMIT 50;
"""
